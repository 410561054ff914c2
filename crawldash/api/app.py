"""FastAPI application factory.

Lifespan
--------
On startup the app opens a single SQLite connection (shared across all
requests via ``request.app.state.db``), initialises the schema, creates the
shared :class:`~crawldash.scraper.browser.BrowserManager` (Chromium itself is
launched on the first browser render) and resolves the AI configuration into
an :class:`~crawldash.extraction.router.ExtractionRouter`.  On shutdown the
browser and the connection are closed.

Routers
-------
    /crawl      submit a crawl
    /results    history, detail and re-crawl
    /ai         AI extraction configuration and smoke test
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from crawldash.config import settings
from crawldash.db import get_connection, init_db
from crawldash.errors import PersistenceError
from crawldash.extraction.models import resolve_ai_config
from crawldash.extraction.router import build_router
from crawldash.logs import configure_logging
from crawldash.scraper.browser import BrowserManager

from crawldash.api.routers import ai as ai_router
from crawldash.api.routers import crawl as crawl_router
from crawldash.api.routers import results as results_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Own the DB connection and the browser for the app's lifetime."""
    configure_logging(settings.log_level)
    conn = get_connection()
    init_db(conn)
    ai_config = resolve_ai_config(settings)
    browser = BrowserManager(max_concurrency=settings.max_concurrent_renders)

    app.state.db = conn
    app.state.browser = browser
    app.state.ai_config = ai_config
    app.state.router = build_router(ai_config)
    try:
        yield
    finally:
        await browser.stop()
        conn.close()


async def _persistence_error_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc)})


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="crawldash API",
        description=(
            "Crawl a URL with a headless browser, optionally extract the parts "
            "matching a natural-language prompt, and browse the stored results."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_exception_handler(PersistenceError, _persistence_error_handler)

    app.include_router(crawl_router.router, prefix="/crawl", tags=["crawl"])
    app.include_router(results_router.router, prefix="/results", tags=["results"])
    app.include_router(ai_router.router, prefix="/ai", tags=["ai"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn crawldash.api.app:app --reload
app = create_app()
