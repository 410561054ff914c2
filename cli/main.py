"""crawldash CLI entry-point.

Usage:
    python cli/main.py --help

Command groups:
    db        → database setup
    crawl     → crawl a URL and store the result
    results   → browse stored results
    ai        → inspect / test AI extraction
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from crawldash.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import asyncio
import json
from typing import Optional

import typer

from crawldash.config import settings
from crawldash.db import get_connection, init_db
from crawldash.db.models import CrawlResult
from crawldash.errors import InvalidUrlError, PersistenceError
from crawldash.extraction.models import resolve_ai_config
from crawldash.extraction.router import build_router
from crawldash.logs import configure_logging
from crawldash.pipeline import CrawlOptions, CrawlRequest, run_crawl
from crawldash.scraper.browser import BrowserManager

from cli.commands.ai import ai_app
from cli.commands.results import results_app
from cli.rendering import render_detail

app = typer.Typer(
    name="crawldash",
    help="Crawl pages, extract content and browse crawl history.",
    no_args_is_help=True,
)
app.add_typer(results_app, name="results")
app.add_typer(ai_app, name="ai")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
) -> None:
    configure_logging("DEBUG" if verbose else settings.log_level)


# ---------------------------------------------------------------------------
# DB commands
# ---------------------------------------------------------------------------
db_app = typer.Typer(help="Database operations.", no_args_is_help=True)
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """Initialise the SQLite database (create tables if they do not exist)."""
    conn = get_connection()
    init_db(conn)
    conn.close()
    typer.echo(f"[db init] Database ready at {settings.db_path}")


# ---------------------------------------------------------------------------
# Crawl command
# ---------------------------------------------------------------------------
async def _crawl(request: CrawlRequest) -> CrawlResult:
    conn = get_connection()
    init_db(conn)
    browser = BrowserManager()
    try:
        return await run_crawl(
            conn, request, build_router(resolve_ai_config(settings)), browser
        )
    finally:
        await browser.stop()
        conn.close()


@app.command("crawl")
def crawl(
    url: str = typer.Argument(..., help="URL to crawl."),
    prompt: Optional[str] = typer.Option(None, "--prompt", "-p", help="What to extract."),
    renderer: str = typer.Option(
        settings.default_renderer, help="Renderer: browser | http | auto."
    ),
    timeout_ms: int = typer.Option(settings.render_timeout_ms, help="Navigation timeout."),
    settle_ms: int = typer.Option(settings.render_settle_ms, help="Delay after load."),
    as_json: bool = typer.Option(False, "--json", help="Print the stored record as JSON."),
) -> None:
    """Crawl a URL, apply the optional prompt, and store the result."""
    try:
        request = CrawlRequest(
            url=url,
            prompt=prompt,
            options=CrawlOptions(renderer=renderer, timeout_ms=timeout_ms, settle_ms=settle_ms),
        )
    except (InvalidUrlError, ValueError) as exc:
        typer.echo(f"[crawl] ✗ {exc}")
        raise typer.Exit(code=2)

    typer.echo(f"[crawl] Crawling {request.url!r} with {renderer} …")
    try:
        result = asyncio.run(_crawl(request))
    except PersistenceError as exc:
        typer.echo(f"[crawl] ✗ Could not store result: {exc}")
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        typer.echo(render_detail(result))
    if not result.success:
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
