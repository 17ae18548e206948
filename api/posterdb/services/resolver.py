"""Poster resolution entry point: cache, strategy selection, fetch and normalization.

Invariants:
- No exception raised by a source crosses this module's public methods; every
  failure becomes a SearchResult with success=False.
- Cache population follows the configured policy, never a unified rule.
- Concurrent misses on the same key each fetch; they are not coalesced.
- Cache keys carry no media type. On the scrape backend a title searched as a
  show is served the cached movie-section result for the same title until it
  expires.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Iterable

from posterdb import __version__
from posterdb.core.config import Settings
from posterdb.schema.posters import PosterCandidate, SearchResult, ServiceStatus
from posterdb.services.cache import ResultCache, should_cache
from posterdb.sources import build_source
from posterdb.sources.base import LookupKey, LookupKind, PosterSource
from posterdb.sources.errors import (
    FetchCancelledError,
    HttpStatusError,
    ParseError,
    PosterSourceError,
)
from posterdb.sources.observability import SourceMonitor
from posterdb.sources.strategy import ItemIdentifiers, build_title_query, select_lookup
from posterdb.utils.redaction import redact_secrets

logger = logging.getLogger("posterdb.services.resolver")


def dedupe_candidates(candidates: Iterable[PosterCandidate]) -> list[PosterCandidate]:
    """Drop repeated posters (same id and url), keeping the first occurrence."""
    seen: set[tuple[str, str]] = set()
    unique: list[PosterCandidate] = []
    for candidate in candidates:
        token = (candidate.id, candidate.full_url)
        if token in seen:
            continue
        seen.add(token)
        unique.append(candidate)
    return unique


class PosterResolver:
    """Resolve media identity to poster candidates without ever raising."""

    def __init__(
        self,
        settings: Settings,
        *,
        source: PosterSource | None = None,
        cache: ResultCache | None = None,
        monitor: SourceMonitor | None = None,
    ) -> None:
        self.settings = settings
        self.source = source if source is not None else build_source(settings)
        self.cache = cache if cache is not None else ResultCache()
        self.monitor = monitor if monitor is not None else SourceMonitor()
        self.lookup_mode = settings.lookup_mode or self.source.lookup_mode
        self.cache_policy = settings.cache_policy or self.source.cache_policy
        self.cache_ttl = timedelta(minutes=settings.cache_ttl_minutes)

    async def search_by_external_id(
        self,
        kind: LookupKind | str,
        identifier: str,
        api_key: str | None = None,
        *,
        cancel: asyncio.Event | None = None,
    ) -> SearchResult:
        """Look posters up by a TMDB, TVDB or IMDB id."""
        try:
            lookup_kind = LookupKind(kind.lower() if isinstance(kind, str) else kind)
            key = LookupKey.for_external_id(lookup_kind, identifier or "")
        except ValueError:
            return SearchResult.failure(f"Unsupported id kind {kind}", query=identifier or "")
        if not key.value:
            return SearchResult.failure(f"Missing {key.kind.value} id", query="")
        return await self._resolve(key, api_key=api_key, cancel=cancel)

    async def search_by_title(
        self,
        title: str,
        api_key: str | None = None,
        *,
        year: int | None = None,
        media_type: str = "movie",
        cancel: asyncio.Event | None = None,
    ) -> SearchResult:
        """Look posters up by free-text title."""
        key = LookupKey.for_title(build_title_query(title, year))
        return await self._resolve(key, api_key=api_key, media_type=media_type, cancel=cancel)

    async def search_item(
        self,
        identifiers: ItemIdentifiers | None,
        display_name: str | None,
        *,
        year: int | None = None,
        media_type: str = "movie",
        api_key: str | None = None,
        cancel: asyncio.Event | None = None,
    ) -> SearchResult:
        """Pick a lookup strategy for an item's identity and resolve it."""
        key, strategy = select_lookup(identifiers, display_name, year, mode=self.lookup_mode)
        logger.debug("Selected %s lookup for %r: %s", strategy.value, display_name, key)
        return await self._resolve(key, api_key=api_key, media_type=media_type, cancel=cancel)

    async def _resolve(
        self,
        key: LookupKey,
        *,
        api_key: str | None,
        media_type: str = "movie",
        cancel: asyncio.Event | None = None,
    ) -> SearchResult:
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for %s", key)
            return cached

        result = await self._fetch(key, api_key=api_key, media_type=media_type, cancel=cancel)
        if cancel is not None and cancel.is_set():
            # A cancelled outcome says nothing about the key.
            return result
        if should_cache(result, self.cache_policy):
            self.cache.put(key, result, self.cache_ttl)
        return result

    async def _fetch(
        self,
        key: LookupKey,
        *,
        api_key: str | None,
        media_type: str,
        cancel: asyncio.Event | None,
    ) -> SearchResult:
        secrets = (api_key, self.settings.api_key)
        try:
            candidates = await self.monitor.track(
                self.source.source_name,
                key.strategy.value,
                lambda: self.source.lookup(key, api_key=api_key, media_type=media_type, cancel=cancel),
                context={"key": str(key)},
                secrets=secrets,
            )
        except FetchCancelledError as exc:
            logger.info("Lookup cancelled for %s", key)
            return SearchResult.failure(str(exc), query=key.value)
        except (HttpStatusError, ParseError) as exc:
            message = redact_secrets(str(exc), *secrets)
            logger.warning("ThePosterDB lookup failed for %s: %s", key, message)
            return SearchResult.failure(message, query=key.value)
        except PosterSourceError as exc:
            message = redact_secrets(str(exc), *secrets)
            logger.error("Error searching ThePosterDB for %s: %s", key, message)
            return SearchResult.failure(message, query=key.value)
        except Exception as exc:  # noqa: BLE001
            message = redact_secrets(str(exc) or exc.__class__.__name__, *secrets)
            logger.exception("Unexpected error searching ThePosterDB for %s", key)
            return SearchResult.failure(message, query=key.value)
        return SearchResult.ok(dedupe_candidates(candidates), query=key.value)

    async def get_status(self) -> ServiceStatus:
        """Report configuration state, version and per-source metrics."""
        return ServiceStatus(
            configured=self.settings.configured,
            version=__version__,
            backend=self.source.source_name,
            sources=await self.monitor.snapshot(),
        )

    async def aclose(self) -> None:
        """Tear down the source (and its browser session) and drop cached results."""
        try:
            await self.source.aclose()
        finally:
            self.cache.clear()
