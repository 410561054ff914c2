"""Page renderers: URL in, :class:`RenderedPage` out.

``BrowserRenderer``
    Headless Chromium via Playwright for JavaScript-rendered sites.  Waits for
    ``domcontentloaded`` rather than network idle so long-polling pages still
    finish, then gives deferred scripts a fixed settle delay.

``HttpRenderer``
    Plain ``httpx`` GET.  Fast, but sees only server-rendered HTML.

``AutoRenderer``
    Static fetch first; escalates to the browser when the response looks like
    a single-page app shell.

All three share the same DOM cleanup and metadata extraction.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from crawldash.config import settings
from crawldash.errors import NavigationError, RenderEngineError, RenderTimeout
from crawldash.scraper.browser import BrowserManager
from crawldash.scraper.extractor import clean_document
from crawldash.scraper.fetcher import fetch_html, is_spa
from crawldash.scraper.metadata import extract_metadata
from crawldash.scraper.models import RenderedPage, Viewport

logger = logging.getLogger(__name__)

# Renderer option name -> crawl method recorded on pages and stored rows.
CRAWL_METHODS: dict[str, str] = {"browser": "playwright", "http": "http", "auto": "auto"}
RENDERER_NAMES = tuple(CRAWL_METHODS)

# Substrings Playwright uses when the browser, context or page went away.
_CLOSED_MARKERS = (
    "has been closed",
    "target closed",
    "browser has disconnected",
    "connection closed",
)


def build_rendered_page(
    html: str,
    source_url: str,
    crawl_method: str,
    final_url: str = "",
    status_code: Optional[int] = None,
    content_type: str = "",
) -> RenderedPage:
    """Clean *html* into a :class:`RenderedPage`.

    Metadata is read before :func:`clean_document` strips chrome and
    boilerplate nodes from the same tree.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    metadata = extract_metadata(soup)
    title, text_content = clean_document(soup)
    return RenderedPage(
        title=title,
        text_content=text_content,
        metadata=metadata,
        source_url=source_url,
        crawl_method=crawl_method,
        captured_at=datetime.now(timezone.utc).isoformat(),
        final_url=final_url or source_url,
        status_code=status_code,
        content_type=content_type,
    )


# ---------------------------------------------------------------------------
# Abstract base
# ---------------------------------------------------------------------------

class Renderer(ABC):
    """Abstract base class for a page renderer."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Tag recorded as ``crawlMethod`` in the stored metadata."""

    @abstractmethod
    async def render(
        self,
        url: str,
        timeout_ms: Optional[int] = None,
        viewport: Optional[Viewport] = None,
        settle_ms: Optional[int] = None,
    ) -> RenderedPage:
        """Load *url* and return its cleaned content.

        Raises:
            RenderTimeout: Navigation exceeded *timeout_ms*.
            NavigationError: DNS, connection or HTTP status failure.
            RenderEngineError: The rendering engine failed.
        """


# ---------------------------------------------------------------------------
# Browser renderer
# ---------------------------------------------------------------------------

class BrowserRenderer(Renderer):
    """Render with the shared headless Chromium owned by *manager*."""

    def __init__(self, manager: BrowserManager) -> None:
        self._manager = manager

    @property
    def name(self) -> str:
        return CRAWL_METHODS["browser"]

    async def render(
        self,
        url: str,
        timeout_ms: Optional[int] = None,
        viewport: Optional[Viewport] = None,
        settle_ms: Optional[int] = None,
    ) -> RenderedPage:
        timeout_ms = timeout_ms or settings.render_timeout_ms
        settle_ms = settings.render_settle_ms if settle_ms is None else settle_ms

        logger.info("[render] %s via browser (timeout=%dms)", url, timeout_ms)
        try:
            async with self._manager.page(viewport) as page:
                response = await page.goto(
                    url, wait_until="domcontentloaded", timeout=timeout_ms
                )
                if response is not None and response.status >= 400:
                    raise NavigationError(
                        f"HTTP {response.status} loading {url}",
                        status_code=response.status,
                    )
                if settle_ms > 0:
                    await page.wait_for_timeout(settle_ms)
                html = await page.content()
                final_url = page.url
        except PlaywrightTimeoutError as exc:
            raise RenderTimeout(f"Timed out after {timeout_ms}ms loading {url}") from exc
        except PlaywrightError as exc:
            raise self._classify(url, exc) from exc

        return build_rendered_page(
            html,
            source_url=url,
            crawl_method=self.name,
            final_url=final_url,
            status_code=response.status if response is not None else None,
            content_type=response.headers.get("content-type", "") if response is not None else "",
        )

    def _classify(self, url: str, exc: PlaywrightError) -> Exception:
        message = str(exc)
        lowered = message.lower()
        if any(marker in lowered for marker in _CLOSED_MARKERS):
            self._manager.mark_dead()
            return RenderEngineError(f"Browser closed while loading {url}: {message}")
        if "net::err_" in lowered:
            return NavigationError(f"Could not load {url}: {message}")
        return RenderEngineError(f"Browser error loading {url}: {message}")


# ---------------------------------------------------------------------------
# Static renderer
# ---------------------------------------------------------------------------

class HttpRenderer(Renderer):
    """Fetch server-rendered HTML without a browser."""

    @property
    def name(self) -> str:
        return CRAWL_METHODS["http"]

    async def render(
        self,
        url: str,
        timeout_ms: Optional[int] = None,
        viewport: Optional[Viewport] = None,
        settle_ms: Optional[int] = None,
    ) -> RenderedPage:
        timeout_ms = timeout_ms or settings.render_timeout_ms
        logger.info("[render] %s via http (timeout=%dms)", url, timeout_ms)
        fetched = await fetch_html(url, timeout_ms)
        return build_rendered_page(
            fetched.html,
            source_url=url,
            crawl_method=self.name,
            final_url=fetched.final_url,
            status_code=fetched.status_code,
            content_type=fetched.content_type,
        )


# ---------------------------------------------------------------------------
# Auto renderer
# ---------------------------------------------------------------------------

class AutoRenderer(Renderer):
    """Static fetch, with a browser re-render for SPA shells."""

    def __init__(self, browser: BrowserRenderer) -> None:
        self._browser = browser

    @property
    def name(self) -> str:
        return CRAWL_METHODS["auto"]

    async def render(
        self,
        url: str,
        timeout_ms: Optional[int] = None,
        viewport: Optional[Viewport] = None,
        settle_ms: Optional[int] = None,
    ) -> RenderedPage:
        timeout_ms = timeout_ms or settings.render_timeout_ms
        fetched = await fetch_html(url, timeout_ms)
        if is_spa(fetched.html):
            logger.info("[render] %s looks like an SPA; re-rendering in browser", url)
            return await self._browser.render(url, timeout_ms, viewport, settle_ms)
        return build_rendered_page(
            fetched.html,
            source_url=url,
            crawl_method=HttpRenderer().name,
            final_url=fetched.final_url,
            status_code=fetched.status_code,
            content_type=fetched.content_type,
        )


def build_renderer(name: str, manager: BrowserManager) -> Renderer:
    """Return the renderer registered under *name*.

    Raises:
        ValueError: If *name* is not one of :data:`RENDERER_NAMES`.
    """
    if name == "browser":
        return BrowserRenderer(manager)
    if name == "http":
        return HttpRenderer()
    if name == "auto":
        return AutoRenderer(BrowserRenderer(manager))
    raise ValueError(f"Unknown renderer {name!r}; expected one of {RENDERER_NAMES}")
