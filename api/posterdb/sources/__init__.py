"""Poster source factory."""

from __future__ import annotations

from posterdb.core.config import FetchBackend, Settings
from posterdb.sources.api import ApiPosterSource
from posterdb.sources.base import PosterSource
from posterdb.sources.browser import BrowserSession
from posterdb.sources.scrape import ScrapePosterSource


def build_source(settings: Settings) -> PosterSource:
    """Return the poster source selected by the configured backend."""
    if settings.backend == FetchBackend.SCRAPE:
        session = BrowserSession(
            headless=settings.browser_headless,
            page_wait_timeout=settings.page_wait_timeout_seconds,
            settle_delay=settings.settle_delay_seconds,
        )
        return ScrapePosterSource(session, base_url=settings.site_base_url)
    if settings.backend == FetchBackend.API:
        return ApiPosterSource(
            base_url=settings.api_base_url,
            api_key=settings.api_key,
            timeout=settings.request_timeout_seconds,
            attempts=settings.request_retries,
        )
    raise ValueError(f"Unsupported backend {settings.backend}")
