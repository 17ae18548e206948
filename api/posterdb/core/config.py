"""Plugin settings parsed from environment variables and defaults."""

import enum
from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://theposterdb.com"


class FetchBackend(str, enum.Enum):
    """Which poster source serves lookups."""

    API = "api"
    SCRAPE = "scrape"


class LookupMode(str, enum.Enum):
    """How a lookup key is chosen from an item's identity."""

    ID_FIRST = "id_first"
    TITLE_ONLY = "title_only"


class CachePolicy(str, enum.Enum):
    """Which resolution outcomes are stored in the result cache."""

    ALL_OUTCOMES = "all_outcomes"
    SUCCESS_ONLY = "success_only"


class Settings(BaseSettings):
    """Plugin configuration loaded from environment variables.

    The resolver receives an instance explicitly; nothing reads it globally.
    """

    app_name: str = "PosterDB"
    log_level: str = "INFO"

    api_key: Optional[str] = None
    backend: FetchBackend = FetchBackend.API
    lookup_mode: Optional[LookupMode] = None
    cache_policy: Optional[CachePolicy] = None

    api_base_url: str = DEFAULT_BASE_URL
    site_base_url: str = DEFAULT_BASE_URL
    request_timeout_seconds: float = 15.0
    request_retries: int = 3

    browser_headless: bool = True
    page_wait_timeout_seconds: float = 5.0
    settle_delay_seconds: float = 1.0

    cache_ttl_minutes: int = 60

    enable_for_movies: bool = True
    enable_for_shows: bool = True
    enable_for_seasons: bool = True
    provider_order: int = 1

    @field_validator("api_key", mode="before")
    @classmethod
    def _blank_api_key(cls, value: str | None) -> str | None:
        """Treat blank API keys as unset."""
        if isinstance(value, str):
            stripped = value.strip()
            return stripped or None
        return value

    @field_validator("api_base_url", "site_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("request_timeout_seconds", "page_wait_timeout_seconds", "cache_ttl_minutes")
    @classmethod
    def _positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value

    @field_validator("settle_delay_seconds")
    @classmethod
    def _non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("must not be negative")
        return value

    @field_validator("request_retries")
    @classmethod
    def _at_least_one_attempt(cls, value: int) -> int:
        return max(1, value)

    @property
    def configured(self) -> bool:
        """The scrape backend needs no credentials; the API needs a key."""
        return self.backend == FetchBackend.SCRAPE or bool(self.api_key)

    model_config = SettingsConfigDict(
        env_prefix="POSTERDB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached settings to avoid re-parsing environment variables."""
    return Settings()
