"""ThePosterDB site scraper backed by the shared browser session."""

from __future__ import annotations

import asyncio
import logging
from urllib.parse import quote

from posterdb.core.config import DEFAULT_BASE_URL, CachePolicy, LookupMode
from posterdb.schema.posters import PosterCandidate
from posterdb.sources.base import LookupKey, LookupKind, PosterSource
from posterdb.sources.browser import BrowserSession
from posterdb.sources.cancel import run_cancellable
from posterdb.sources.errors import PosterSourceError
from posterdb.sources.extract import SOURCE_DISPLAY_NAME, extract_set_ids, parse_set_page

logger = logging.getLogger("posterdb.sources.scrape")


def search_section(media_type: str | None) -> str:
    """Only the literal "show" searches shows; anything else falls back to movies."""
    return "shows" if media_type == "show" else "movies"


class ScrapePosterSource(PosterSource):
    """Searches the site by title and scrapes the first matching set."""

    source_name = "scrape"
    lookup_mode = LookupMode.TITLE_ONLY
    cache_policy = CachePolicy.SUCCESS_ONLY

    def __init__(
        self,
        session: BrowserSession,
        *,
        base_url: str = DEFAULT_BASE_URL,
        uploader: str = SOURCE_DISPLAY_NAME,
    ) -> None:
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.uploader = uploader

    def search_url(self, term: str, media_type: str = "movie") -> str:
        return f"{self.base_url}/search?term={quote(term, safe='')}&section={search_section(media_type)}"

    def set_url(self, set_id: int) -> str:
        return f"{self.base_url}/set/{set_id}"

    async def search_title(
        self,
        title: str,
        *,
        media_type: str = "movie",
        cancel: asyncio.Event | None = None,
    ) -> list[PosterCandidate]:
        """Scrape posters from the first set matching a title search.

        A known year is already part of ``title`` as a " (YYYY)" suffix.
        """
        url = self.search_url(title, media_type)
        logger.info("Searching ThePosterDB: %s", url)
        search_html = await run_cancellable(lambda: self.session.render(url), cancel)

        set_ids = extract_set_ids(search_html)
        if not set_ids:
            logger.warning("No sets found for search: %s", title)
            return []
        logger.info("Found set %s, fetching posters...", set_ids[0])
        return await self.scrape_set(set_ids[0], cancel=cancel)

    async def scrape_set(self, set_id: int, *, cancel: asyncio.Event | None = None) -> list[PosterCandidate]:
        url = self.set_url(set_id)
        logger.info("Fetching set: %s", url)
        html = await run_cancellable(lambda: self.session.render(url), cancel)
        return parse_set_page(html, base_url=self.base_url, uploader=self.uploader)

    async def lookup(
        self,
        key: LookupKey,
        *,
        api_key: str | None = None,
        media_type: str = "movie",
        cancel: asyncio.Event | None = None,
    ) -> list[PosterCandidate]:
        if key.kind is not LookupKind.TITLE:
            raise PosterSourceError("External id lookups are not supported by the scrape backend")
        return await self.search_title(key.value, media_type=media_type, cancel=cancel)

    async def aclose(self) -> None:
        await self.session.aclose()
