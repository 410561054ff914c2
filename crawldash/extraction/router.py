"""Extraction router: picks how a prompt is applied to page text.

Strategies are tried in order until one succeeds:

    identity (no prompt) → AI provider (if configured) → local heuristics
    → passthrough

Each strategy reports an :class:`Attempt` instead of raising, and the
passthrough always succeeds, so :meth:`ExtractionRouter.route` never fails.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from crawldash.errors import UnsupportedProviderError
from crawldash.extraction.heuristics import extract_locally
from crawldash.extraction.models import AIConfig, ExtractionOutcome, Provider
from crawldash.extraction.providers import ExtractionProvider, build_provider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Attempt:
    """Result-or-failure of one strategy."""

    strategy: str
    outcome: Optional[ExtractionOutcome] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome is not None


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

class ExtractionStrategy(ABC):
    """One way of turning (content, prompt) into an outcome."""

    name: str = "strategy"

    async def attempt(self, content: str, prompt: str) -> Attempt:
        try:
            outcome = await self.run(content, prompt)
        except Exception as exc:  # noqa: BLE001
            return Attempt(self.name, error=f"{type(exc).__name__}: {exc}")
        return Attempt(self.name, outcome=outcome)

    @abstractmethod
    async def run(self, content: str, prompt: str) -> ExtractionOutcome:
        """Produce an outcome or raise."""


class AIStrategy(ExtractionStrategy):
    name = "ai"

    def __init__(self, provider: ExtractionProvider) -> None:
        self.provider = provider

    async def run(self, content: str, prompt: str) -> ExtractionOutcome:
        text = await self.provider.extract(content, prompt)
        return ExtractionOutcome(text, self.provider.provider, self.provider.model)


class HeuristicStrategy(ExtractionStrategy):
    name = "heuristic"

    async def run(self, content: str, prompt: str) -> ExtractionOutcome:
        return ExtractionOutcome(extract_locally(content, prompt), Provider.LOCAL_HEURISTIC)


class PassthroughStrategy(ExtractionStrategy):
    name = "passthrough"

    async def run(self, content: str, prompt: str) -> ExtractionOutcome:
        return ExtractionOutcome(passthrough(content, prompt), Provider.NONE)


def passthrough(content: str, prompt: str) -> str:
    return f'Extraction Request: "{prompt}"\n\n{content}'


# ---------------------------------------------------------------------------
# Router
# ---------------------------------------------------------------------------

class ExtractionRouter:
    """Apply extraction prompts using an ordered list of strategies."""

    def __init__(self, strategies: Sequence[ExtractionStrategy]) -> None:
        self._strategies = list(strategies)

    @property
    def strategy_names(self) -> list[str]:
        return [s.name for s in self._strategies]

    async def route(
        self,
        text_content: str,
        prompt: Optional[str],
        metadata: Optional[dict[str, Any]] = None,
    ) -> ExtractionOutcome:
        """Return the extraction outcome for *prompt* over *text_content*.

        No prompt is the identity transform.  *metadata* is accepted for
        callers that have it; the current strategies only read the text.
        """
        content = text_content or ""
        if not prompt or not prompt.strip():
            return ExtractionOutcome(content, Provider.NONE)
        prompt = prompt.strip()

        for strategy in self._strategies:
            result = await strategy.attempt(content, prompt)
            if result.ok:
                logger.info("[extract] %s strategy succeeded", result.strategy)
                return result.outcome  # type: ignore[return-value]
            logger.warning(
                "[extract] %s strategy failed (%s); trying next", result.strategy, result.error
            )

        return ExtractionOutcome(passthrough(content, prompt), Provider.NONE)


def build_router(config: AIConfig) -> ExtractionRouter:
    """Build the router for *config*.

    The provider variant is chosen here, once.  An unknown provider name is
    logged and the router runs without an AI step.
    """
    strategies: list[ExtractionStrategy] = []
    if config.enabled:
        try:
            strategies.append(AIStrategy(build_provider(config)))
        except UnsupportedProviderError as exc:
            logger.error("[extract] %s; using local heuristics only", exc)
    strategies.append(HeuristicStrategy())
    strategies.append(PassthroughStrategy())
    return ExtractionRouter(strategies)
