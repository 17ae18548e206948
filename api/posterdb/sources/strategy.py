"""Lookup strategy selection from an item's known identity."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from posterdb.core.config import LookupMode
from posterdb.sources.base import LookupKey, LookupKind, StrategyKind


@dataclass(frozen=True, slots=True)
class ItemIdentifiers:
    """External database ids known for a media item."""

    tmdb: str | None = None
    tvdb: str | None = None
    imdb: str | None = None

    @classmethod
    def from_provider_ids(cls, provider_ids: Mapping[str, str | None] | None) -> ItemIdentifiers:
        """Build identifiers from a host provider-id mapping such as {"Tmdb": "27205"}."""
        if not provider_ids:
            return cls()
        folded = {str(name).casefold(): value for name, value in provider_ids.items()}
        return cls(tmdb=folded.get("tmdb"), tvdb=folded.get("tvdb"), imdb=folded.get("imdb"))

    def ordered(self) -> list[tuple[LookupKind, str | None]]:
        return [
            (LookupKind.TMDB, self.tmdb),
            (LookupKind.TVDB, self.tvdb),
            (LookupKind.IMDB, self.imdb),
        ]


def build_title_query(display_name: str | None, year: int | None = None) -> str:
    """Return the title search term, suffixed with " (year)" when the year is known."""
    name = (display_name or "").strip()
    if name and year:
        return f"{name} ({year})"
    return name


def select_lookup(
    identifiers: ItemIdentifiers | None,
    display_name: str | None,
    year: int | None = None,
    *,
    mode: LookupMode = LookupMode.ID_FIRST,
) -> tuple[LookupKey, StrategyKind]:
    """Pick the lookup key and strategy for an item. Never fails."""
    if mode is LookupMode.ID_FIRST and identifiers is not None:
        for kind, value in identifiers.ordered():
            if value and value.strip():
                return LookupKey.for_external_id(kind, value), StrategyKind.EXTERNAL_ID
    key = LookupKey.for_title(build_title_query(display_name, year))
    return key, StrategyKind.TITLE_SEARCH
