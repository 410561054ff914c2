"""Crawl submission endpoint.

Routes
------
POST /crawl    Body: {"url": "https://...", "prompt": "...", "options": {...}}
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from crawldash.errors import InvalidUrlError
from crawldash.pipeline import CrawlRequest, run_crawl

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class CrawlBody(BaseModel):
    url: str
    prompt: Optional[str] = None
    options: Optional[dict[str, Any]] = None


# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------

@router.post("")
async def crawl(body: CrawlBody, request: Request) -> dict[str, Any]:
    """Render the URL, apply the optional prompt, and store the outcome.

    Render and extraction failures are not HTTP errors: they come back as a
    stored result with ``status == "error"``.  Only bad input (422) and an
    unavailable store (500) fail the request.
    """
    try:
        crawl_request = CrawlRequest.from_payload(body.url, body.prompt, body.options)
    except (InvalidUrlError, ValueError, TypeError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    state = request.app.state
    result = await run_crawl(state.db, crawl_request, state.router, state.browser)
    return result.to_dict()
