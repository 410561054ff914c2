"""Extraction package: AI providers, local heuristics and the router."""

from crawldash.extraction.heuristics import classify_prompt, extract_locally
from crawldash.extraction.models import AIConfig, ExtractionOutcome, Provider, resolve_ai_config
from crawldash.extraction.providers import build_provider
from crawldash.extraction.router import ExtractionRouter, build_router

__all__ = [
    "AIConfig",
    "ExtractionOutcome",
    "ExtractionRouter",
    "Provider",
    "build_provider",
    "build_router",
    "classify_prompt",
    "extract_locally",
    "resolve_ai_config",
]
