"""AI extraction configuration endpoints.

Routes
------
GET  /ai/config    → active provider, model and limits (no credential)
POST /ai/test      Body: {"prompt": "..."}  → run an extraction on sample text
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel

from crawldash.errors import ExtractionError
from crawldash.extraction.prompts import DEFAULT_TEST_PROMPT, SAMPLE_CONTENT
from crawldash.extraction.providers import build_provider

router = APIRouter()


class AITestBody(BaseModel):
    prompt: Optional[str] = None


@router.get("/config")
def ai_config(request: Request) -> dict[str, Any]:
    return request.app.state.ai_config.public_dict()


@router.post("/test")
async def ai_test(request: Request, body: Optional[AITestBody] = None) -> dict[str, Any]:
    """Run the configured extraction against :data:`SAMPLE_CONTENT`.

    With an AI provider enabled the provider is called directly, so a broken
    key or unreachable server shows up as ``success: false`` instead of being
    hidden by the heuristic fallback.
    """
    prompt = (body.prompt if body else None) or DEFAULT_TEST_PROMPT
    config = request.app.state.ai_config

    if not config.enabled:
        outcome = await request.app.state.router.route(SAMPLE_CONTENT, prompt)
        return {
            "success": True,
            "result": outcome.content,
            "config": {"provider": outcome.provider.value, "model": outcome.model},
        }

    summary = {"provider": config.provider, "model": config.model}
    try:
        provider = build_provider(config)
        text = await provider.extract(SAMPLE_CONTENT, prompt)
    except ExtractionError as exc:
        return {"success": False, "error": str(exc), "config": summary}
    return {"success": True, "result": text, "config": summary}
