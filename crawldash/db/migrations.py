"""Schema bootstrap for the crawl store.

Running :func:`init_db` against an already initialised file is harmless: the
schema uses ``IF NOT EXISTS`` throughout and :func:`migrate` only applies
entries newer than the recorded version.
"""

from __future__ import annotations

import sqlite3

from crawldash.config import settings
from crawldash.errors import PersistenceError

# (version, sql) pairs applied in order by ``migrate``.
MIGRATIONS: list[tuple[int, str]] = []


def init_db(conn: sqlite3.Connection) -> None:
    """Create the ``crawl_results`` table, its index and the version table.

    Raises:
        PersistenceError: If the schema cannot be applied.
    """
    sql = settings.schema_path.read_text(encoding="utf-8")
    try:
        conn.executescript(sql)
        _create_version_table(conn)
        migrate(conn)
    except sqlite3.Error as exc:
        raise PersistenceError(f"Schema initialisation failed: {exc}") from exc


def _create_version_table(conn: sqlite3.Connection) -> None:
    with conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_version (
                version    INTEGER PRIMARY KEY,
                applied_at INTEGER DEFAULT (strftime('%s', 'now'))
            )
            """
        )


def current_version(conn: sqlite3.Connection) -> int:
    """Latest recorded migration number, or 0 on a fresh database."""
    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    return row[0] or 0


def migrate(conn: sqlite3.Connection) -> None:
    """Apply every entry of :data:`MIGRATIONS` newer than the current version."""
    done = current_version(conn)
    for version, sql in sorted(MIGRATIONS):
        if version <= done:
            continue
        with conn:
            conn.execute(sql)
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (version,))
