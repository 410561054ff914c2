"""Commands for browsing stored crawl results."""

from __future__ import annotations

import asyncio
import json
from typing import Optional

import typer

from crawldash.config import settings
from crawldash.db import get_connection, init_db
from crawldash.db.results import count_results, get_result, list_results
from crawldash.extraction.models import resolve_ai_config
from crawldash.extraction.router import build_router
from crawldash.pipeline import rerun_crawl
from crawldash.scraper.browser import BrowserManager

from cli.rendering import render_detail, render_row

results_app = typer.Typer(help="Browse crawl history.", no_args_is_help=True)


@results_app.command("list")
def results_list(
    limit: int = typer.Option(20, help="Page size."),
    offset: int = typer.Option(0, help="Rows to skip."),
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Filter by url, title or content."),
) -> None:
    """List stored results, newest first."""
    conn = get_connection()
    init_db(conn)
    try:
        rows = list_results(conn, limit=limit, offset=offset, query=search)
        total = count_results(conn, query=search)
    finally:
        conn.close()

    if not rows:
        typer.echo("[results] No results found.")
        return
    for r in rows:
        typer.echo(render_row(r))
    typer.echo(f"[results] Showing {offset + 1}-{offset + len(rows)} of {total}.")


@results_app.command("show")
def results_show(
    result_id: int = typer.Argument(..., help="Result id."),
    as_json: bool = typer.Option(False, "--json", help="Print the raw record as JSON."),
) -> None:
    """Show one stored result."""
    conn = get_connection()
    init_db(conn)
    try:
        result = get_result(conn, result_id)
    finally:
        conn.close()

    if result is None:
        typer.echo(f"[results] No result with id {result_id}.")
        raise typer.Exit(code=1)
    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        typer.echo(render_detail(result))


async def _rerun(result_id: int):
    conn = get_connection()
    init_db(conn)
    browser = BrowserManager()
    try:
        return await rerun_crawl(
            conn, result_id, build_router(resolve_ai_config(settings)), browser
        )
    finally:
        await browser.stop()
        conn.close()


@results_app.command("rerun")
def results_rerun(
    result_id: int = typer.Argument(..., help="Result id to crawl again."),
) -> None:
    """Crawl a stored result's URL again with the same prompt."""
    result = asyncio.run(_rerun(result_id))
    if result is None:
        typer.echo(f"[results] No result with id {result_id}.")
        raise typer.Exit(code=1)
    typer.echo(f"[results] New result {result.id} ({result.status}) for {result.url}")
