"""Shared fakes for source, browser and clock tests."""

from __future__ import annotations

import asyncio
from typing import Any, Sequence

from posterdb.core.config import CachePolicy, LookupMode
from posterdb.schema.posters import PosterCandidate
from posterdb.sources.base import LookupKey, PosterSource


def make_candidate(poster_id: str = "1", **overrides: Any) -> PosterCandidate:
    values: dict[str, Any] = {
        "id": poster_id,
        "title": f"Poster {poster_id}",
        "full_url": f"https://theposterdb.com/api/assets/{poster_id}",
        "uploader": "tester",
        "width": 1000,
        "height": 1500,
    }
    values.update(overrides)
    return PosterCandidate(**values)


class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, *, minutes: float = 0, seconds: float = 0) -> None:
        self.now += minutes * 60 + seconds


class StubSource(PosterSource):
    """Source that replays queued outcomes and records every lookup."""

    source_name = "stub"

    def __init__(
        self,
        outcomes: Sequence[Any],
        *,
        lookup_mode: LookupMode = LookupMode.ID_FIRST,
        cache_policy: CachePolicy = CachePolicy.ALL_OUTCOMES,
    ) -> None:
        self.outcomes = list(outcomes)
        self.lookup_mode = lookup_mode
        self.cache_policy = cache_policy
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    async def lookup(
        self,
        key: LookupKey,
        *,
        api_key: str | None = None,
        media_type: str = "movie",
        cancel: asyncio.Event | None = None,
    ) -> list[PosterCandidate]:
        self.calls.append({"key": key, "api_key": api_key, "media_type": media_type})
        if not self.outcomes:
            raise RuntimeError("No stub outcomes configured")
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return list(outcome)

    async def aclose(self) -> None:
        self.closed = True


class FakePage:
    """Stand-in for a Playwright page."""

    def __init__(
        self,
        html: str = "<html><script></script></html>",
        *,
        goto_error: Exception | None = None,
        block: asyncio.Event | None = None,
    ) -> None:
        self.html = html
        self.goto_error = goto_error
        self.block = block
        self.visited: list[str] = []
        self.close_calls = 0

    async def goto(self, url: str, wait_until: str | None = None) -> None:
        self.visited.append(url)
        if self.block is not None:
            await self.block.wait()
        if self.goto_error is not None:
            raise self.goto_error

    async def wait_for_selector(self, selector: str, state: str | None = None, timeout: float | None = None) -> None:
        return None

    async def content(self) -> str:
        return self.html

    async def close(self) -> None:
        self.close_calls += 1


class FakeBrowser:
    """Stand-in for a Playwright browser handing out pre-built pages."""

    def __init__(self, pages: Sequence[FakePage] | None = None) -> None:
        self._queued = list(pages or [])
        self.pages: list[FakePage] = []
        self.closed = False

    async def new_page(self) -> FakePage:
        page = self._queued.pop(0) if self._queued else FakePage()
        self.pages.append(page)
        return page

    async def close(self) -> None:
        self.closed = True


class FakePlaywright:
    def __init__(self) -> None:
        self.stopped = False

    async def stop(self) -> None:
        self.stopped = True


class FakeLauncher:
    """Launcher that counts launches and can be told to fail."""

    def __init__(self, browser: FakeBrowser | None = None, *, error: Exception | None = None, delay: float = 0.01) -> None:
        self.browser = browser or FakeBrowser()
        self.playwright = FakePlaywright()
        self.error = error
        self.delay = delay
        self.calls: list[tuple[bool, tuple[str, ...]]] = []

    async def __call__(self, headless: bool, args: Sequence[str]) -> tuple[FakePlaywright, FakeBrowser]:
        self.calls.append((headless, tuple(args)))
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.playwright, self.browser
