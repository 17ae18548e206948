"""Poster candidate and search result schemas.

Invariants:
- A SearchResult is immutable; cached instances are handed out as-is.
- success=False implies no results; success=True implies no error message.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_LANGUAGE = "en"


class ImageType(str, enum.Enum):
    """Host image slots a candidate can fill."""

    PRIMARY = "primary"
    BACKDROP = "backdrop"
    BANNER = "banner"
    THUMB = "thumb"
    LOGO = "logo"


class PosterCandidate(BaseModel):
    """One discovered poster before host-side ranking."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    title: str = ""
    thumbnail_url: str = ""
    full_url: str = Field(min_length=1)
    uploader: str = ""
    width: int = Field(default=0, ge=0)
    height: int = Field(default=0, ge=0)
    is_textless: bool = False
    language: str = DEFAULT_LANGUAGE
    upload_date: datetime | None = None
    likes: int = Field(default=0, ge=0)
    media_type: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        values = dict(data)
        if not values.get("thumbnail_url"):
            values["thumbnail_url"] = values.get("full_url", "")
        if not values.get("language"):
            values["language"] = DEFAULT_LANGUAGE
        width = values.get("width") or 0
        height = values.get("height") or 0
        if width <= 0 or height <= 0:
            # Unknown aspect is represented as 0x0, never half-known.
            values["width"] = 0
            values["height"] = 0
        if (values.get("likes") or 0) < 0:
            values["likes"] = 0
        return values


class SearchResult(BaseModel):
    """Outcome of one resolution attempt."""

    model_config = ConfigDict(frozen=True)

    results: tuple[PosterCandidate, ...] = ()
    total_results: int = 0
    query: str = ""
    success: bool = True
    error_message: str | None = None

    @model_validator(mode="after")
    def _check_invariants(self) -> "SearchResult":
        if not self.success and self.results:
            raise ValueError("failed results must not carry candidates")
        if self.success and self.error_message is not None:
            raise ValueError("successful results must not carry an error message")
        if not self.success and not self.error_message:
            raise ValueError("failed results need an error message")
        if self.total_results != len(self.results):
            raise ValueError("total_results must match the number of results")
        return self

    @classmethod
    def ok(cls, results: Iterable[PosterCandidate] = (), *, query: str = "") -> "SearchResult":
        items = tuple(results)
        return cls(results=items, total_results=len(items), query=query, success=True)

    @classmethod
    def failure(cls, message: str, *, query: str = "") -> "SearchResult":
        return cls(query=query, success=False, error_message=message or "Unknown error")


class SourceOperationStatus(BaseModel):
    """Counters for one source operation."""

    started: int = 0
    succeeded: int = 0
    failed: int = 0
    last_latency_ms: float | None = None
    last_error: str | None = None


class ServiceStatus(BaseModel):
    """Status payload reported to the host."""

    configured: bool
    version: str
    backend: str
    sources: dict[str, dict[str, SourceOperationStatus]] = Field(default_factory=dict)
