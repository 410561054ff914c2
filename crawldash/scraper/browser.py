"""Long-lived headless Chromium handle shared by every browser render.

The composition root (FastAPI lifespan, CLI command) owns one
:class:`BrowserManager` and passes it to the renderer.  Chromium is launched
lazily on first use and relaunched when the previous instance died.  Each
render gets its own browser context, closed when the render finishes.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, nullcontext
from typing import AsyncIterator, Optional

from playwright.async_api import Browser, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from crawldash.errors import RenderEngineError
from crawldash.scraper.fetcher import BROWSER_USER_AGENT
from crawldash.scraper.models import Viewport

logger = logging.getLogger(__name__)

LAUNCH_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--no-first-run",
    "--no-zygote",
)


class BrowserManager:
    """Lazily launched Chromium with supervised restart.

    Args:
        headless: Run Chromium without a window.
        max_concurrency: Upper bound on simultaneously open pages.  ``0``
            disables the bound.
    """

    def __init__(self, headless: bool = True, max_concurrency: int = 0) -> None:
        self._headless = headless
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        # Browsers dropped by mark_dead, closed before the next launch or on stop.
        self._retired: list[Browser] = []
        self._lock = asyncio.Lock()
        self._slots = asyncio.Semaphore(max_concurrency) if max_concurrency > 0 else None
        self.launch_count = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def is_running(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def start(self) -> None:
        """Launch Chromium now instead of on the first render."""
        await self._ensure_browser()

    async def stop(self) -> None:
        """Close Chromium and the Playwright driver."""
        async with self._lock:
            await self._close_browser()
            await self._close_retired()
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None
        logger.info("[render] browser stopped")

    def mark_dead(self) -> None:
        """Retire the current browser so the next acquisition relaunches it.

        The retired instance is closed before the relaunch, or by :meth:`stop`.
        """
        browser, self._browser = self._browser, None
        if browser is not None:
            logger.warning("[render] browser marked dead; it will be relaunched")
            self._retired.append(browser)

    def _forget(self, browser: Browser) -> None:
        # A late "disconnected" from a retired browser must not drop its successor.
        if self._browser is browser:
            logger.warning("[render] browser disconnected; it will be relaunched")
            self._browser = None

    async def _close(self, browser: Browser) -> None:
        try:
            await browser.close()
        except PlaywrightError as exc:
            logger.debug("[render] ignoring error while closing browser: %s", exc)

    async def _close_browser(self) -> None:
        browser, self._browser = self._browser, None
        if browser is not None:
            await self._close(browser)

    async def _close_retired(self) -> None:
        retired, self._retired = self._retired, []
        for browser in retired:
            await self._close(browser)

    async def _ensure_browser(self) -> Browser:
        async with self._lock:
            if self.is_running:
                return self._browser  # type: ignore[return-value]
            await self._close_browser()
            await self._close_retired()
            try:
                if self._playwright is None:
                    self._playwright = await async_playwright().start()
                browser = await self._playwright.chromium.launch(
                    headless=self._headless,
                    args=list(LAUNCH_ARGS),
                )
            except PlaywrightError as exc:
                raise RenderEngineError(f"Could not launch browser: {exc}") from exc
            browser.on("disconnected", self._forget)
            self._browser = browser
            self.launch_count += 1
            logger.info("[render] browser launched (launch #%d)", self.launch_count)
            return browser

    # ------------------------------------------------------------------
    # Per-render context
    # ------------------------------------------------------------------
    @asynccontextmanager
    async def page(self, viewport: Optional[Viewport] = None) -> AsyncIterator[Page]:
        """Yield a fresh page in its own browser context.

        The context (and with it the page) is closed on exit whether or not
        the render succeeded.
        """
        async with self._slots or nullcontext():
            browser = await self._ensure_browser()
            try:
                context = await browser.new_context(
                    viewport=(viewport or Viewport()).as_dict(),
                    user_agent=BROWSER_USER_AGENT,
                )
            except PlaywrightError as exc:
                self.mark_dead()
                raise RenderEngineError(f"Could not open browser context: {exc}") from exc
            try:
                yield await context.new_page()
            finally:
                try:
                    await context.close()
                except PlaywrightError as exc:
                    logger.debug("[render] ignoring error while closing context: %s", exc)
