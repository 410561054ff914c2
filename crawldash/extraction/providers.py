"""AI extraction providers.

Provider variants
-----------------
``openai``
    ``langchain_openai.ChatOpenAI`` against the chat-completions API.
    Requires ``OPENAI_API_KEY``.

``anthropic``
    ``langchain_anthropic.ChatAnthropic`` against the messages API.
    Requires ``ANTHROPIC_API_KEY``.

``ollama``
    ``langchain_ollama.ChatOllama`` against a local Ollama server.  No
    credential needed.

Every variant answers the same question, "apply this extraction request to
this text", through :meth:`ExtractionProvider.extract`.  The variant is picked
once by :func:`build_provider` when the configuration is resolved.  There is
no retry: one failure raises :class:`~crawldash.errors.ProviderError` and the
router falls back to local heuristics.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from crawldash.errors import ProviderError, UnsupportedProviderError
from crawldash.extraction.models import AIConfig, Provider
from crawldash.extraction.prompts import SYSTEM_PROMPT, build_user_prompt

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Abstract base
# ---------------------------------------------------------------------------

class ExtractionProvider(ABC):
    """Abstract base class for a single AI extraction provider."""

    provider: Provider
    # Environment variable named in the error when the credential is missing.
    credential_env: Optional[str] = None

    def __init__(self, config: AIConfig) -> None:
        self.config = config

    @property
    def name(self) -> str:
        return self.provider.value

    @property
    def model(self) -> str:
        return self.config.model

    @abstractmethod
    def _chat_model(self) -> Any:
        """Return a configured LangChain chat model for this provider."""

    async def extract(self, content: str, prompt: str) -> str:
        """Return the provider's answer to *prompt* applied to *content*.

        Raises:
            ProviderError: Missing credential, a failed call, or a reply
                without text.
        """
        if self.credential_env and not self.config.credential:
            raise ProviderError(
                f"{self.credential_env} is not set. Set it or switch AI_PROVIDER to ollama."
            )

        from langchain_core.messages import HumanMessage, SystemMessage

        messages = [
            SystemMessage(content=SYSTEM_PROMPT),
            HumanMessage(content=build_user_prompt(content, prompt)),
        ]
        logger.debug("[extract] calling %s (%s)", self.name, self.model)
        try:
            reply = await self._chat_model().ainvoke(messages)
        except Exception as exc:  # noqa: BLE001
            raise ProviderError(
                f"[{self.name}] request failed: {exc}",
                status_code=getattr(exc, "status_code", None),
            ) from exc
        return self._text_or_raise(getattr(reply, "content", None))

    def _text_or_raise(self, value: Any) -> str:
        # Some chat models return a list of content blocks instead of a string.
        if isinstance(value, list):
            value = "".join(
                block if isinstance(block, str) else str(block.get("text", ""))
                for block in value
                if isinstance(block, (str, dict))
            )
        if not isinstance(value, str) or not value.strip():
            raise ProviderError(f"[{self.name}] reply contained no text")
        return value.strip()


# ---------------------------------------------------------------------------
# Provider implementations
# ---------------------------------------------------------------------------

class OpenAIProvider(ExtractionProvider):
    provider = Provider.OPENAI
    credential_env = "OPENAI_API_KEY"

    def _chat_model(self) -> Any:
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=self.model,
            api_key=self.config.credential,
            base_url=f"{self.config.base_url}/v1" if self.config.base_url else None,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
            timeout=self.config.timeout,
            max_retries=0,
        )


class AnthropicProvider(ExtractionProvider):
    provider = Provider.ANTHROPIC
    credential_env = "ANTHROPIC_API_KEY"

    def _chat_model(self) -> Any:
        from langchain_anthropic import ChatAnthropic

        kwargs: dict[str, Any] = {}
        if self.config.base_url:
            kwargs["base_url"] = self.config.base_url
        return ChatAnthropic(
            model=self.model,
            api_key=self.config.credential,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
            timeout=self.config.timeout,
            max_retries=0,
            **kwargs,
        )


class OllamaProvider(ExtractionProvider):
    provider = Provider.OLLAMA

    def _chat_model(self) -> Any:
        from langchain_ollama import ChatOllama

        return ChatOllama(
            model=self.model,
            base_url=self.config.base_url or None,
            temperature=self.config.temperature,
            num_predict=self.config.max_tokens,
            client_kwargs={"timeout": self.config.timeout},
        )


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

_PROVIDERS: dict[str, type[ExtractionProvider]] = {
    Provider.OPENAI.value: OpenAIProvider,
    Provider.ANTHROPIC.value: AnthropicProvider,
    Provider.OLLAMA.value: OllamaProvider,
}


def build_provider(config: AIConfig) -> ExtractionProvider:
    """Return the provider variant named by ``config.provider``.

    Raises:
        UnsupportedProviderError: If the name is not a known provider.
    """
    try:
        cls = _PROVIDERS[config.provider]
    except KeyError:
        raise UnsupportedProviderError(
            f"Unsupported AI provider {config.provider!r}; "
            f"expected one of {sorted(_PROVIDERS)}"
        ) from None
    return cls(config)
