"""Database layer package.

Public re-exports so callers can write::

    from crawldash.db import get_connection, init_db
    from crawldash.db import results
"""

from crawldash.db.connection import get_connection
from crawldash.db.migrations import init_db
from crawldash.db import results

__all__ = ["get_connection", "init_db", "results"]
