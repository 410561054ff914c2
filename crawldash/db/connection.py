"""Opening the crawl store.

>>> conn = get_connection(":memory:")
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Optional, Union

from crawldash.config import settings
from crawldash.errors import PersistenceError

MEMORY = ":memory:"


def get_connection(db_path: Optional[Union[Path, str]] = None) -> sqlite3.Connection:
    """Return a connection to the crawl store.

    Args:
        db_path: Database file to open; ``settings.db_path`` when omitted.
            Pass ``":memory:"`` for a throwaway database.

    Rows come back as :class:`sqlite3.Row`, indexable by column name.

    Raises:
        PersistenceError: If the database cannot be opened.
    """
    target = str(db_path or settings.db_path)
    if target != MEMORY:
        settings.ensure_workspace()

    try:
        # Shared across the event loop and FastAPI's threadpool.
        conn = sqlite3.connect(target, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode = WAL")
    except sqlite3.Error as exc:
        raise PersistenceError(f"Could not open database {target}: {exc}") from exc

    return conn
