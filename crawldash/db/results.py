"""Insert and read operations for the ``crawl_results`` table.

Rows are written once and never updated or deleted.  Every ``sqlite3``
failure surfaces as :class:`~crawldash.errors.PersistenceError`.
"""

from __future__ import annotations

import json
import logging
import re
import sqlite3
from dataclasses import replace
from typing import Optional

from crawldash.db.models import CrawlResult
from crawldash.errors import PersistenceError

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50
MAX_LIMIT = 1000

_COLUMNS = "id, url, title, content, metadata, crawled_at, status"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _row_to_result(row: sqlite3.Row) -> CrawlResult:
    return CrawlResult(
        id=row["id"],
        url=row["url"],
        title=row["title"],
        content=row["content"] if row["content"] is not None else "",
        metadata=json.loads(row["metadata"] or "{}"),
        crawled_at=row["crawled_at"],
        status=row["status"],
    )


def _search_clause(query: Optional[str]) -> tuple[str, tuple[str, ...]]:
    if not query or not query.strip():
        return "", ()
    escaped = re.sub(r"([\\%_])", r"\\\1", query.strip().lower())
    pattern = f"%{escaped}%"
    return (
        " WHERE lower(url) LIKE ? ESCAPE '\\'"
        " OR lower(coalesce(title, '')) LIKE ? ESCAPE '\\'"
        " OR lower(coalesce(content, '')) LIKE ? ESCAPE '\\'",
        (pattern, pattern, pattern),
    )


def _clamp(limit: int, offset: int) -> tuple[int, int]:
    return max(1, min(limit, MAX_LIMIT)), max(0, offset)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def insert_result(conn: sqlite3.Connection, result: CrawlResult) -> CrawlResult:
    """Insert *result* and return a copy carrying the generated ``id``.

    Raises:
        PersistenceError: If the insert fails.
    """
    try:
        with conn:
            cursor = conn.execute(
                """
                INSERT INTO crawl_results (url, title, content, metadata, crawled_at, status)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    result.url,
                    result.title,
                    result.content,
                    result.metadata_json(),
                    result.crawled_at,
                    result.status,
                ),
            )
    except sqlite3.Error as exc:
        raise PersistenceError(f"Could not store crawl result for {result.url}: {exc}") from exc

    stored = replace(result, id=cursor.lastrowid)
    logger.info("[db] stored crawl result %s (%s) for %s", stored.id, stored.status, stored.url)
    return stored


def get_result(conn: sqlite3.Connection, result_id: int) -> Optional[CrawlResult]:
    """Fetch a single result by id.  Returns ``None`` if not found."""
    try:
        row = conn.execute(
            f"SELECT {_COLUMNS} FROM crawl_results WHERE id = ?", (result_id,)  # noqa: S608
        ).fetchone()
    except sqlite3.Error as exc:
        raise PersistenceError(f"Could not read crawl result {result_id}: {exc}") from exc
    return _row_to_result(row) if row else None


def list_results(
    conn: sqlite3.Connection,
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
    query: Optional[str] = None,
) -> list[CrawlResult]:
    """Return results newest first, optionally filtered by *query*.

    *query* matches case-insensitively against url, title and content.
    """
    limit, offset = _clamp(limit, offset)
    where, params = _search_clause(query)
    try:
        rows = conn.execute(
            f"SELECT {_COLUMNS} FROM crawl_results{where}"  # noqa: S608
            " ORDER BY crawled_at DESC, id DESC LIMIT ? OFFSET ?",
            (*params, limit, offset),
        ).fetchall()
    except sqlite3.Error as exc:
        raise PersistenceError(f"Could not list crawl results: {exc}") from exc
    return [_row_to_result(r) for r in rows]


def count_results(conn: sqlite3.Connection, query: Optional[str] = None) -> int:
    """Return the number of stored results matching *query*."""
    where, params = _search_clause(query)
    try:
        row = conn.execute(
            f"SELECT COUNT(*) FROM crawl_results{where}", params  # noqa: S608
        ).fetchone()
    except sqlite3.Error as exc:
        raise PersistenceError(f"Could not count crawl results: {exc}") from exc
    return row[0]
