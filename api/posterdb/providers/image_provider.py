"""Host-facing remote image provider for movies, shows and collections."""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass, field

import httpx

from posterdb.core.config import Settings
from posterdb.schema.posters import ImageType, PosterCandidate
from posterdb.services.resolver import PosterResolver
from posterdb.sources.extract import SOURCE_DISPLAY_NAME, determine_image_type
from posterdb.sources.strategy import ItemIdentifiers

logger = logging.getLogger("posterdb.providers.image_provider")

SUPPORTED_IMAGE_TYPES = (
    ImageType.PRIMARY,
    ImageType.BACKDROP,
    ImageType.BANNER,
    ImageType.THUMB,
    ImageType.LOGO,
)


class MediaKind(str, enum.Enum):
    MOVIE = "movie"
    SERIES = "series"
    SEASON = "season"
    EPISODE = "episode"
    BOXSET = "boxset"


@dataclass(slots=True)
class MediaItem:
    """The slice of a host library item the provider needs."""
    kind: MediaKind
    name: str
    year: int | None = None
    provider_ids: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class RemoteImageInfo:
    """Image metadata handed back to the host for ranking and download."""
    provider_name: str
    url: str
    thumbnail_url: str
    type: ImageType
    width: int
    height: int
    language: str
    community_rating: float


class PosterImageProvider:
    """Supply ThePosterDB artwork for host items."""

    name = SOURCE_DISPLAY_NAME

    def __init__(self, resolver: PosterResolver, settings: Settings | None = None) -> None:
        self.resolver = resolver
        self.settings = settings or resolver.settings
        self.order = self.settings.provider_order

    def supports(self, item: MediaItem) -> bool:
        if item.kind in (MediaKind.MOVIE, MediaKind.BOXSET):
            return self.settings.enable_for_movies
        if item.kind in (MediaKind.SERIES, MediaKind.EPISODE):
            return self.settings.enable_for_shows
        if item.kind is MediaKind.SEASON:
            return self.settings.enable_for_seasons
        return False

    def supported_images(self, item: MediaItem) -> list[ImageType]:
        return list(SUPPORTED_IMAGE_TYPES)

    def _to_image_info(self, poster: PosterCandidate) -> RemoteImageInfo:
        return RemoteImageInfo(
            provider_name=self.name,
            url=poster.full_url,
            thumbnail_url=poster.thumbnail_url,
            type=determine_image_type(poster),
            width=poster.width,
            height=poster.height,
            language=poster.language,
            community_rating=float(poster.likes),
        )

    async def get_images(self, item: MediaItem, *, cancel: asyncio.Event | None = None) -> list[RemoteImageInfo]:
        """Return candidate images for an item; failures yield an empty list."""
        logger.info("GetImages called for item: %s (Type: %s)", item.name, item.kind.value)
        if not self.supports(item):
            return []

        # Only movies and series carry a production year into the title query.
        year = item.year if item.kind in (MediaKind.MOVIE, MediaKind.SERIES) else None
        media_type = "movie" if item.kind in (MediaKind.MOVIE, MediaKind.BOXSET) else "show"
        try:
            response = await self.resolver.search_item(
                ItemIdentifiers.from_provider_ids(item.provider_ids),
                item.name,
                year=year,
                media_type=media_type,
                cancel=cancel,
            )
        except Exception:  # noqa: BLE001
            logger.exception("Error fetching images from ThePosterDB for %s", item.name)
            return []

        if not response.success:
            logger.warning("Search failed: %s", response.error_message or "Unknown error")
            return []

        images = [self._to_image_info(poster) for poster in response.results]
        for image in images:
            logger.debug(
                "Adding image: %s (Type: %s, Size: %sx%s)", image.url, image.type.value, image.width, image.height
            )
        logger.info("Returning %s images for %s", len(images), item.name)
        return images

    async def get_image_response(self, url: str) -> httpx.Response:
        """Download an image for the host's own storage pipeline."""
        async with httpx.AsyncClient(timeout=self.settings.request_timeout_seconds, follow_redirects=True) as client:
            return await client.get(url)
