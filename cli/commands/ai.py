"""Commands for inspecting and testing the AI extraction setup."""

from __future__ import annotations

import asyncio
from typing import Optional

import typer

from crawldash.config import settings
from crawldash.errors import ExtractionError
from crawldash.extraction.models import resolve_ai_config
from crawldash.extraction.providers import build_provider
from crawldash.extraction.router import build_router
from crawldash.extraction.prompts import DEFAULT_TEST_PROMPT, SAMPLE_CONTENT

ai_app = typer.Typer(help="AI extraction configuration.", no_args_is_help=True)


@ai_app.command("config")
def ai_config() -> None:
    """Print the resolved AI configuration (the API key is never shown)."""
    config = resolve_ai_config(settings).public_dict()
    for key, value in config.items():
        typer.echo(f"  {key:<12}: {value}")


@ai_app.command("test")
def ai_test(
    prompt: Optional[str] = typer.Option(None, help="Extraction prompt to try."),
) -> None:
    """Run an extraction against built-in sample text."""
    prompt = prompt or DEFAULT_TEST_PROMPT
    config = resolve_ai_config(settings)

    if not config.enabled:
        typer.echo("[ai test] No AI provider enabled; using local heuristics.")
        outcome = asyncio.run(build_router(config).route(SAMPLE_CONTENT, prompt))
        typer.echo(outcome.content)
        return

    typer.echo(f"[ai test] Calling {config.provider} ({config.model}) …")
    try:
        provider = build_provider(config)
        text = asyncio.run(provider.extract(SAMPLE_CONTENT, prompt))
    except ExtractionError as exc:
        typer.echo(f"[ai test] ✗ {exc}")
        raise typer.Exit(code=1)
    typer.echo(text)
