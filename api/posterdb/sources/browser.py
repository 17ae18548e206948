"""Shared headless browser session for rendering JavaScript-heavy pages.

Invariants:
- The browser is launched at most once per session, under a lock that is only
  held while launching; page renders run concurrently afterwards.
- A failed launch is remembered and re-raised to every caller, not retried.
- Every page opened by ``render`` is closed, including on error or cancellation.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Any, Awaitable, Callable, Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from posterdb.sources.errors import NotInitializedError, TransportError

logger = logging.getLogger("posterdb.sources.browser")

DEFAULT_LAUNCH_ARGS = ("--disable-blink-features=AutomationControlled",)
DEFAULT_PAGE_WAIT_SECONDS = 5.0
DEFAULT_SETTLE_DELAY_SECONDS = 1.0

Launcher = Callable[[bool, Sequence[str]], Awaitable[tuple[Any, Any]]]


class SessionState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


async def launch_chromium(headless: bool, args: Sequence[str]) -> tuple[Any, Any]:
    """Start Playwright and launch Chromium, returning ``(playwright, browser)``."""
    playwright = await async_playwright().start()
    try:
        browser = await playwright.chromium.launch(headless=headless, args=list(args))
    except BaseException:
        await playwright.stop()
        raise
    return playwright, browser


class BrowserSession:
    """Lazily launched, long-lived browser with short-lived pages."""

    def __init__(
        self,
        *,
        headless: bool = True,
        launch_args: Sequence[str] = DEFAULT_LAUNCH_ARGS,
        page_wait_timeout: float = DEFAULT_PAGE_WAIT_SECONDS,
        settle_delay: float = DEFAULT_SETTLE_DELAY_SECONDS,
        launcher: Launcher | None = None,
    ) -> None:
        self.headless = headless
        self.launch_args = tuple(launch_args)
        self.page_wait_timeout = page_wait_timeout
        self.settle_delay = settle_delay
        self._launcher = launcher or launch_chromium
        self._lock = asyncio.Lock()
        self._state = SessionState.UNINITIALIZED
        self._playwright: Any = None
        self._browser: Any = None
        self._init_error: BaseException | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    def _raise_failed(self) -> None:
        raise NotInitializedError(f"Browser failed to start: {self._init_error}") from self._init_error

    async def ensure_started(self) -> Any:
        """Return the shared browser, launching it on first use."""
        if self._state is SessionState.READY:
            return self._browser
        if self._state is SessionState.FAILED:
            self._raise_failed()

        async with self._lock:
            if self._state is SessionState.READY:
                return self._browser
            if self._state is SessionState.FAILED:
                self._raise_failed()

            self._state = SessionState.INITIALIZING
            logger.info("Initializing Playwright browser...")
            try:
                self._playwright, self._browser = await self._launcher(self.headless, self.launch_args)
            except asyncio.CancelledError:
                self._state = SessionState.UNINITIALIZED
                raise
            except Exception as exc:
                self._state = SessionState.FAILED
                self._init_error = exc
                logger.error("Failed to initialize Playwright browser: %s", exc)
                self._raise_failed()
            self._state = SessionState.READY
            logger.info("Playwright browser initialized successfully")
            return self._browser

    async def render(self, url: str) -> str:
        """Load ``url`` in a fresh page and return the rendered HTML."""
        browser = await self.ensure_started()
        try:
            page = await browser.new_page()
        except PlaywrightError as exc:
            raise TransportError(f"Could not open page: {exc}") from exc
        try:
            await page.goto(url, wait_until="networkidle")
            await page.wait_for_selector(
                "script", state="attached", timeout=self.page_wait_timeout * 1000
            )
            await asyncio.sleep(self.settle_delay)
            return await page.content()
        except PlaywrightError as exc:
            raise TransportError(f"Failed to render {url}: {exc}") from exc
        finally:
            await self._close_page(page, url)

    async def _close_page(self, page: Any, url: str) -> None:
        try:
            await page.close()
        except PlaywrightError as exc:
            logger.warning("Failed to close page for %s: %s", url, exc)

    async def aclose(self) -> None:
        """Close the browser and stop Playwright; the session can be started again."""
        async with self._lock:
            browser, playwright = self._browser, self._playwright
            self._browser = None
            self._playwright = None
            self._init_error = None
            self._state = SessionState.UNINITIALIZED
        if browser is not None:
            await browser.close()
        if playwright is not None:
            await playwright.stop()
