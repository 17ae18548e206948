"""Error taxonomy for poster sources.

Sources raise these; only the resolver turns them into failed results.
"""

from __future__ import annotations


class PosterSourceError(Exception):
    """Base class for poster lookup failures."""


class TransportError(PosterSourceError):
    """Network, DNS or timeout failure while talking to the source."""


class HttpStatusError(PosterSourceError):
    """The source answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str | None = None) -> None:
        self.status_code = status_code
        super().__init__(message or f"API returned {status_code}")


class ParseError(PosterSourceError):
    """The payload could not be decoded at all."""


class NotInitializedError(PosterSourceError):
    """The browser session failed to start and cannot serve pages."""


class FetchCancelledError(PosterSourceError):
    """The caller signalled cancellation while a fetch was in flight."""

    def __init__(self, message: str = "Request cancelled") -> None:
        super().__init__(message)
