"""Crawl history endpoints.

Routes
------
GET  /results?limit=50&offset=0&q=<text>   → newest first, optional search
GET  /results/{id}                         → one result
POST /results/{id}/rerun                   → crawl the same URL + prompt again
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Query, Request

from crawldash.db.results import count_results, get_result, list_results
from crawldash.pipeline import rerun_crawl

router = APIRouter()


@router.get("")
def results(
    request: Request,
    limit: int = Query(50, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    q: Optional[str] = None,
) -> dict[str, Any]:
    """Page through stored results.

    Args:
        limit: Page size.
        offset: Rows to skip.
        q: Case-insensitive substring matched against url, title and content.
    """
    conn = request.app.state.db
    rows = list_results(conn, limit=limit, offset=offset, query=q)
    return {
        "results": [r.to_dict() for r in rows],
        "count": len(rows),
        "total": count_results(conn, query=q),
    }


@router.get("/{result_id}")
def result_detail(result_id: int, request: Request) -> dict[str, Any]:
    result = get_result(request.app.state.db, result_id)
    if result is None:
        raise HTTPException(status_code=404, detail=f"Result not found: {result_id}")
    return result.to_dict()


@router.post("/{result_id}/rerun")
async def rerun(result_id: int, request: Request) -> dict[str, Any]:
    """Crawl a stored result's URL again.  The original row is not modified."""
    state = request.app.state
    result = await rerun_crawl(state.db, result_id, state.router, state.browser)
    if result is None:
        raise HTTPException(status_code=404, detail=f"Result not found: {result_id}")
    return result.to_dict()
