"""Async question source backed by a model provider."""

from __future__ import annotations

import asyncio
from typing import List, Optional, Sequence

import structlog

from ..config.settings import GameConfig
from ..core.schemas import Question
from .prompts import build_messages
from .providers import JsonCapability, ProviderError, ProviderFactory, ProviderRequest, QuestionProvider

LOGGER = structlog.get_logger(__name__)


class LLMQuestionSource:
    """Generates questions through a :class:`QuestionProvider` without blocking the loop."""

    def __init__(
        self,
        provider: QuestionProvider,
        *,
        model: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        options: Optional[dict] = None,
    ) -> None:
        self.provider = provider
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.options = dict(options or {})

    def build_request(self, categories: Sequence[str], count: int) -> ProviderRequest:
        system_role = self.provider.json_capability == JsonCapability.JSON_OBJECT
        return ProviderRequest(
            model=self.model,
            messages=build_messages(categories, count, system_role=system_role),
            categories=list(categories),
            count=count,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            metadata={"options": self.options},
        )

    async def generate(self, categories: Sequence[str], count: int) -> List[Question]:
        """Return validated questions. Raises ProviderError or SchemaValidationError."""
        request = self.build_request(categories, count)
        response = await asyncio.to_thread(self.provider.generate, request)
        return response.questions

    def close(self) -> None:
        self.provider.close()


def build_question_source(config: GameConfig) -> Optional[LLMQuestionSource]:
    """Create the configured source, or ``None`` when no provider is usable.

    A missing API key is not an error for the game: the engine then plays from the local
    question bank.
    """
    if config.offline:
        LOGGER.info("question_source.offline")
        return None

    provider_name = config.default_provider
    try:
        provider = ProviderFactory.create(
            provider_name,
            base_url=config.base_url_for(provider_name),
            timeout=config.request.timeout,
        )
    except ProviderError as exc:
        LOGGER.warning("question_source.unavailable", provider=provider_name, error=str(exc))
        return None

    LOGGER.info("question_source.ready", provider=provider_name, model=config.model_for(provider_name))
    return LLMQuestionSource(
        provider,
        model=config.model_for(provider_name),
        temperature=config.request.temperature,
        max_tokens=config.request.max_tokens,
        options=config.request.options,
    )
