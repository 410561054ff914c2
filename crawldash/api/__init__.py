"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from crawldash.api import app

    uvicorn crawldash.api:app --reload
"""

from crawldash.api.app import app

__all__ = ["app"]
