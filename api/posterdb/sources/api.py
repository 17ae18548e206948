"""ThePosterDB JSON API source."""

from __future__ import annotations

import asyncio
import logging
from urllib.parse import quote

from posterdb.core.config import DEFAULT_BASE_URL, CachePolicy, LookupMode
from posterdb.schema.posters import PosterCandidate
from posterdb.sources.base import LookupKey, LookupKind, PosterSource
from posterdb.sources.cancel import run_cancellable
from posterdb.sources.extract import parse_api_payload
from posterdb.sources.http import fetch_text

logger = logging.getLogger("posterdb.sources.api")


class ApiPosterSource(PosterSource):
    """Looks posters up by external id or title through the REST API."""

    source_name = "api"
    lookup_mode = LookupMode.ID_FIRST
    cache_policy = CachePolicy.ALL_OUTCOMES

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        api_key: str | None = None,
        timeout: float = 15.0,
        attempts: int = 3,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.attempts = attempts

    def _headers(self, api_key: str | None) -> dict[str, str]:
        headers = {"accept": "application/json"}
        key = api_key or self.api_key
        if key:
            headers["X-API-Key"] = key
        return headers

    def build_url(self, key: LookupKey) -> str:
        encoded = quote(key.value, safe="")
        if key.kind is LookupKind.TITLE:
            return f"{self.base_url}/api/search?query={encoded}"
        return f"{self.base_url}/api/posters/{key.kind.value}/{encoded}"

    async def fetch(self, key: LookupKey, *, api_key: str | None = None) -> str:
        """Return the raw response body for a lookup key."""
        url = self.build_url(key)
        logger.debug("Requesting %s", url)
        return await fetch_text(
            url,
            headers=self._headers(api_key),
            timeout=self.timeout,
            attempts=self.attempts,
        )

    async def lookup(
        self,
        key: LookupKey,
        *,
        api_key: str | None = None,
        media_type: str = "movie",
        cancel: asyncio.Event | None = None,
    ) -> list[PosterCandidate]:
        body = await run_cancellable(lambda: self.fetch(key, api_key=api_key), cancel)
        return parse_api_payload(body)
