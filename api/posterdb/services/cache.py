"""In-memory result cache with lazy expiry.

Invariants:
- Entries are only evicted when a read finds them stale; there is no sweeper.
- The lock guards dictionary access only and is never held across I/O.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable

from posterdb.core.config import CachePolicy
from posterdb.schema.posters import SearchResult
from posterdb.sources.base import LookupKey

CACHE_TTL = timedelta(minutes=60)


@dataclass(slots=True)
class CacheEntry:
    key: LookupKey
    value: SearchResult
    expires_at: float


def should_cache(result: SearchResult, policy: CachePolicy) -> bool:
    """Apply a population policy to a finished resolution."""
    if policy is CachePolicy.ALL_OUTCOMES:
        return True
    return result.success and bool(result.results)


class ResultCache:
    """Map lookup keys to search results for a fixed time-to-live."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[LookupKey, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: LookupKey) -> SearchResult | None:
        """Return a fresh cached result, dropping it if it has expired."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if now >= entry.expires_at:
                del self._entries[key]
                return None
            return entry.value

    def put(self, key: LookupKey, value: SearchResult, ttl: timedelta = CACHE_TTL) -> None:
        """Store a result, replacing any previous entry for the key."""
        expires_at = self._clock() + ttl.total_seconds()
        with self._lock:
            self._entries[key] = CacheEntry(key=key, value=value, expires_at=expires_at)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
