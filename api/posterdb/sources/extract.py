"""Normalize API JSON envelopes and rendered set pages into poster candidates.

Invariants:
- Field extraction is per field: a missing or mistyped field falls back to its
  default instead of discarding the item.
- Only an undecodable JSON payload fails as a whole (ParseError).
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from bs4 import BeautifulSoup

from posterdb.schema.posters import DEFAULT_LANGUAGE, ImageType, PosterCandidate
from posterdb.sources.errors import ParseError
from posterdb.utils.datetime import parse_timestamp

logger = logging.getLogger("posterdb.sources.extract")

SOURCE_DISPLAY_NAME = "ThePosterDB"
SCRAPED_WIDTH = 1000
SCRAPED_HEIGHT = 1500
DEFAULT_MEDIA_LABEL = "Movie"
BACKDROP_RATIO = 1.5
UNKNOWN_ASPECT_RATIO = 0.67

_SET_ID_RE = re.compile(r"/set/(\d+)", re.IGNORECASE)
POSTER_ID_SELECTOR = "[data-poster-id]"
POSTER_TITLE_SELECTOR = "p.p-0.mb-1.text-break"
MEDIA_LABEL_SELECTOR = '[data-toggle="tooltip"][title]'
MEDIA_LABELS = ("movie", "show", "collection")
_TRAILING_YEAR_RE = re.compile(r"^(?P<title>.*?)\s*\((?P<year>\d{4})\)\s*$", re.DOTALL)


def _string_field(item: dict[str, Any], name: str) -> str:
    value = item.get(name)
    return value if isinstance(value, str) else ""


def _int_field(item: dict[str, Any], name: str) -> int:
    value = item.get(name)
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return 0


def _textless_field(item: dict[str, Any]) -> bool:
    value = item.get("textless")
    if value is True:
        return True
    return isinstance(value, int) and not isinstance(value, bool) and value == 1


def _candidate_from_item(item: dict[str, Any]) -> PosterCandidate | None:
    full_url = _string_field(item, "url")
    if not full_url:
        return None
    return PosterCandidate(
        id=_string_field(item, "id"),
        title=_string_field(item, "title"),
        thumbnail_url=_string_field(item, "thumbnail_url"),
        full_url=full_url,
        uploader=_string_field(item, "uploader"),
        width=_int_field(item, "width"),
        height=_int_field(item, "height"),
        is_textless=_textless_field(item),
        language=_string_field(item, "language") or DEFAULT_LANGUAGE,
        upload_date=parse_timestamp(item.get("upload_date") or item.get("created_at")),
        likes=max(_int_field(item, "likes"), 0),
    )


def parse_api_payload(payload: str | bytes | dict[str, Any]) -> list[PosterCandidate]:
    """Parse a ``{"data": [...]}`` envelope into candidates, preserving order.

    A missing or non-array ``data`` is an empty result, not a failure.
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ParseError("Failed to parse response") from exc
    if not isinstance(payload, dict):
        return []
    items = payload.get("data")
    if not isinstance(items, list):
        return []

    candidates: list[PosterCandidate] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            logger.warning("Skipping non-object poster entry at index %s", index)
            continue
        try:
            candidate = _candidate_from_item(item)
        except ValueError as exc:
            logger.warning("Skipping malformed poster entry at index %s: %s", index, exc)
            continue
        if candidate is None:
            logger.debug("Skipping poster entry without url at index %s", index)
            continue
        candidates.append(candidate)
    return candidates


def extract_set_ids(html: str) -> list[int]:
    """Return distinct ``/set/<id>`` ids in first-seen order."""
    seen: set[int] = set()
    set_ids: list[int] = []
    for match in _SET_ID_RE.finditer(html or ""):
        set_id = int(match.group(1))
        if set_id in seen:
            continue
        seen.add(set_id)
        set_ids.append(set_id)
    return set_ids


def split_title_year(text: str) -> tuple[str, int | None]:
    """Split a trailing ``(YYYY)`` off a display title."""
    match = _TRAILING_YEAR_RE.match(text or "")
    if not match:
        return (text or "").strip(), None
    return match.group("title").strip(), int(match.group("year"))


def asset_url(base_url: str, poster_id: str) -> str:
    return f"{base_url.rstrip('/')}/api/assets/{poster_id}"


def parse_set_page(
    html: str,
    *,
    base_url: str,
    uploader: str = SOURCE_DISPLAY_NAME,
) -> list[PosterCandidate]:
    """Zip poster ids, titles and media labels from a rendered set page.

    The pairing is bounded by the shorter of the id and title sequences; media
    labels are auxiliary and default to "Movie" when missing.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    poster_ids = [
        value
        for value in (node.get("data-poster-id", "").strip() for node in soup.select(POSTER_ID_SELECTOR))
        if value.isdigit()
    ]
    titles = [node.get_text(" ", strip=True) for node in soup.select(POSTER_TITLE_SELECTOR)]
    labels = [
        label
        for label in (node.get("title", "").strip() for node in soup.select(MEDIA_LABEL_SELECTOR))
        if label.lower() in MEDIA_LABELS
    ]
    if len(poster_ids) != len(titles):
        logger.warning(
            "Set page has %s poster ids but %s titles; pairing the first %s",
            len(poster_ids),
            len(titles),
            min(len(poster_ids), len(titles)),
        )

    candidates: list[PosterCandidate] = []
    for index, (poster_id, raw_title) in enumerate(zip(poster_ids, titles)):
        label = labels[index] if index < len(labels) else DEFAULT_MEDIA_LABEL
        title, _year = split_title_year(raw_title)
        url = asset_url(base_url, poster_id)
        try:
            candidates.append(
                PosterCandidate(
                    id=poster_id,
                    title=title,
                    thumbnail_url=url,
                    full_url=url,
                    uploader=uploader,
                    width=SCRAPED_WIDTH,
                    height=SCRAPED_HEIGHT,
                    is_textless=False,
                    language=DEFAULT_LANGUAGE,
                    likes=0,
                    media_type=label.capitalize(),
                )
            )
        except ValueError as exc:
            logger.warning("Skipping poster %s from set page: %s", poster_id, exc)
    logger.info("Parsed %s posters from set page", len(candidates))
    return candidates


def determine_image_type(candidate: PosterCandidate) -> ImageType:
    """Classify wide images as backdrops and everything else as primary art."""
    if candidate.width > 0 and candidate.height > 0:
        ratio = candidate.width / candidate.height
    else:
        ratio = UNKNOWN_ASPECT_RATIO
    if ratio > BACKDROP_RATIO:
        return ImageType.BACKDROP
    return ImageType.PRIMARY
