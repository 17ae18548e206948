"""Base source primitives for poster lookups."""

from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass

from posterdb.core.config import CachePolicy, LookupMode
from posterdb.schema.posters import PosterCandidate


class LookupKind(str, enum.Enum):
    """Identity a lookup is keyed on."""

    TMDB = "tmdb"
    TVDB = "tvdb"
    IMDB = "imdb"
    TITLE = "title"


EXTERNAL_ID_KINDS = (LookupKind.TMDB, LookupKind.TVDB, LookupKind.IMDB)


class StrategyKind(str, enum.Enum):
    """How a source locates candidates for a key."""

    EXTERNAL_ID = "external_id"
    TITLE_SEARCH = "title_search"


@dataclass(frozen=True, slots=True)
class LookupKey:
    """Cache identity for one lookup.

    Title values are stripped but keep their case, so title keys are case-sensitive.
    """

    kind: LookupKind
    value: str

    @classmethod
    def for_title(cls, title: str | None) -> LookupKey:
        return cls(LookupKind.TITLE, (title or "").strip())

    @classmethod
    def for_external_id(cls, kind: LookupKind, identifier: str) -> LookupKey:
        if kind not in EXTERNAL_ID_KINDS:
            raise ValueError(f"{kind.value} is not an external id kind")
        return cls(kind, identifier.strip())

    @property
    def strategy(self) -> StrategyKind:
        if self.kind is LookupKind.TITLE:
            return StrategyKind.TITLE_SEARCH
        return StrategyKind.EXTERNAL_ID

    def __str__(self) -> str:
        return f"{self.kind.value}_{self.value}"


class PosterSource:
    """Abstract poster source.

    Implementations raise PosterSourceError subclasses on failure and return an
    empty list when the source simply has nothing for the key.
    """

    source_name: str
    lookup_mode: LookupMode = LookupMode.ID_FIRST
    cache_policy: CachePolicy = CachePolicy.ALL_OUTCOMES

    async def lookup(
        self,
        key: LookupKey,
        *,
        api_key: str | None = None,
        media_type: str = "movie",
        cancel: asyncio.Event | None = None,
    ) -> list[PosterCandidate]:
        """Return candidates for a lookup key."""
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release long-lived resources held by the source."""
        return None
