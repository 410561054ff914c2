"""Crawl pipeline for a single URL.

``run_crawl`` orchestrates one crawl from request to stored record:

    render → route extraction → assemble → insert

Every call stores exactly one ``crawl_results`` row.  Render and extraction
failures become an error row; only a failure to store even that row
propagates (as :class:`~crawldash.errors.PersistenceError`).
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional
from urllib.parse import urlparse

from crawldash.assembler import assemble, assemble_error
from crawldash.config import settings
from crawldash.db.models import CrawlResult
from crawldash.db.results import get_result, insert_result
from crawldash.errors import InvalidUrlError, PersistenceError
from crawldash.extraction.router import ExtractionRouter
from crawldash.scraper.browser import BrowserManager
from crawldash.scraper.models import Viewport
from crawldash.scraper.renderer import CRAWL_METHODS, RENDERER_NAMES, build_renderer

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

def validate_url(url: Optional[str]) -> str:
    """Return *url* stripped, or raise :class:`InvalidUrlError`."""
    if not url or not url.strip():
        raise InvalidUrlError("URL is required")
    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidUrlError(f"Not an absolute http(s) URL: {url!r}")
    return url


def _pick(options: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if options.get(key) is not None:
            return options[key]
    return None


@dataclass(frozen=True)
class CrawlOptions:
    renderer: str = field(default_factory=lambda: settings.default_renderer)
    timeout_ms: int = field(default_factory=lambda: settings.render_timeout_ms)
    settle_ms: int = field(default_factory=lambda: settings.render_settle_ms)
    viewport: Viewport = field(default_factory=Viewport)

    def __post_init__(self) -> None:
        if self.renderer not in RENDERER_NAMES:
            raise ValueError(
                f"Unknown renderer {self.renderer!r}; expected one of {RENDERER_NAMES}"
            )
        if self.timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")
        if self.settle_ms < 0:
            raise ValueError("settle_ms must not be negative")

    @classmethod
    def from_dict(cls, options: Optional[Mapping[str, Any]]) -> "CrawlOptions":
        """Build options from a request bag.  Unknown keys are ignored.

        Accepts camelCase (``timeoutMs``) as sent by the browser UI, or
        snake_case.
        """
        options = options or {}
        kwargs: dict[str, Any] = {}
        renderer = _pick(options, "renderer")
        if renderer is not None:
            kwargs["renderer"] = str(renderer)
        timeout_ms = _pick(options, "timeoutMs", "timeout_ms", "timeout")
        if timeout_ms is not None:
            kwargs["timeout_ms"] = int(timeout_ms)
        settle_ms = _pick(options, "settleMs", "settle_ms")
        if settle_ms is not None:
            kwargs["settle_ms"] = int(settle_ms)
        viewport = options.get("viewport")
        if isinstance(viewport, Mapping):
            defaults = Viewport()
            kwargs["viewport"] = Viewport(
                width=int(viewport.get("width", defaults.width)),
                height=int(viewport.get("height", defaults.height)),
            )
        return cls(**kwargs)


@dataclass(frozen=True)
class CrawlRequest:
    url: str
    prompt: Optional[str] = None
    options: CrawlOptions = field(default_factory=CrawlOptions)

    def __post_init__(self) -> None:
        object.__setattr__(self, "url", validate_url(self.url))
        prompt = self.prompt.strip() if self.prompt else None
        object.__setattr__(self, "prompt", prompt or None)

    @classmethod
    def from_payload(
        cls,
        url: Optional[str],
        prompt: Optional[str] = None,
        options: Optional[Mapping[str, Any]] = None,
    ) -> "CrawlRequest":
        return cls(url=url or "", prompt=prompt, options=CrawlOptions.from_dict(options))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def run_crawl(
    conn: sqlite3.Connection,
    request: CrawlRequest,
    router: ExtractionRouter,
    manager: BrowserManager,
) -> CrawlResult:
    """Crawl ``request.url`` and store the outcome.

    Pipeline:
        1. Render the page with the renderer named in ``request.options``.
        2. Route the text through :class:`ExtractionRouter` (identity when no
           prompt was given).
        3. Assemble the success record, or an error record if 1-2 raised.
        4. Insert the record.  If a success record cannot be stored, an
           error record describing the store failure is tried instead.

    Raises:
        PersistenceError: Not even the error record could be stored.
    """
    options = request.options
    crawl_method = CRAWL_METHODS.get(options.renderer, options.renderer)
    logger.info("[crawl] %s (renderer=%s, prompt=%s)", request.url, crawl_method, bool(request.prompt))

    try:
        renderer = build_renderer(options.renderer, manager)
        crawl_method = renderer.name
        page = await renderer.render(
            request.url,
            timeout_ms=options.timeout_ms,
            viewport=options.viewport,
            settle_ms=options.settle_ms,
        )
        # The browsing context is already released at this point.
        outcome = await router.route(
            page.text_content, request.prompt, page.metadata.as_dict()
        )
        result = assemble(page, outcome, request.url, request.prompt)
    except Exception as exc:  # noqa: BLE001
        logger.error("[crawl] %s failed: %s: %s", request.url, type(exc).__name__, exc)
        result = assemble_error(request.url, exc, request.prompt, crawl_method)

    try:
        return insert_result(conn, result)
    except PersistenceError as exc:
        if not result.success:
            raise
        logger.error("[crawl] could not store result for %s: %s", request.url, exc)
        return insert_result(
            conn, assemble_error(request.url, exc, request.prompt, crawl_method)
        )


async def rerun_crawl(
    conn: sqlite3.Connection,
    result_id: int,
    router: ExtractionRouter,
    manager: BrowserManager,
    options: Optional[CrawlOptions] = None,
) -> Optional[CrawlResult]:
    """Crawl a stored result's URL again with its original prompt.

    Creates a new row; the original is left untouched.  Returns ``None`` if
    *result_id* does not exist.
    """
    previous = get_result(conn, result_id)
    if previous is None:
        return None
    request = CrawlRequest(
        url=previous.url,
        prompt=previous.metadata.get("extractionPrompt"),
        options=options or CrawlOptions(),
    )
    return await run_crawl(conn, request, router, manager)
