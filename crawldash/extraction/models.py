"""Data models for the extraction step."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from crawldash.config import Settings


class Provider(str, Enum):
    """Which step produced the stored content."""

    NONE = "none"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OLLAMA = "ollama"
    LOCAL_HEURISTIC = "local-heuristic"


DEFAULT_MODELS: dict[str, str] = {
    Provider.OPENAI.value: "gpt-3.5-turbo",
    Provider.ANTHROPIC.value: "claude-3-haiku-20240307",
    Provider.OLLAMA.value: "llama2",
}


@dataclass(frozen=True)
class ExtractionOutcome:
    content: str
    provider: Provider
    model: Optional[str] = None


@dataclass(frozen=True)
class AIConfig:
    """Resolved AI provider configuration.

    ``credential`` is not validated here; providers that need one check it
    when they are called.
    """

    provider: str
    model: str
    credential: str = ""
    base_url: str = ""
    max_tokens: int = 2000
    temperature: float = 0.1
    timeout: float = 60.0
    enabled: bool = False

    @property
    def has_credential(self) -> bool:
        return bool(self.credential)

    def public_dict(self) -> dict[str, Any]:
        """Summary safe to return to clients (the credential is omitted)."""
        return {
            "provider": self.provider or None,
            "model": self.model or None,
            "enabled": self.enabled,
            "hasApiKey": self.has_credential,
            "maxTokens": self.max_tokens,
            "temperature": self.temperature,
        }


def resolve_ai_config(s: Settings) -> AIConfig:
    """Build an :class:`AIConfig` from *s*."""
    provider = s.ai_provider
    credential = ""
    base_url = ""
    if provider == Provider.OPENAI.value:
        credential, base_url = s.openai_api_key, s.openai_base_url
    elif provider == Provider.ANTHROPIC.value:
        credential, base_url = s.anthropic_api_key, s.anthropic_base_url
    elif provider == Provider.OLLAMA.value:
        base_url = s.ollama_base_url

    return AIConfig(
        provider=provider,
        model=s.ai_model or DEFAULT_MODELS.get(provider, ""),
        credential=credential,
        base_url=base_url.rstrip("/"),
        max_tokens=s.ai_max_tokens,
        temperature=s.ai_temperature,
        timeout=s.ai_request_timeout,
        enabled=bool(provider) and s.ai_enabled,
    )
