"""Question provider abstraction layer."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..core.schemas import Question


class JsonCapability(Enum):
    """Enum representing how a provider returns structured output."""

    JSON_OBJECT = "json_object"  # response_format json_object is honoured
    NONE = "none"  # free text, JSON must be extracted


@dataclass(slots=True)
class ProviderRequest:
    """Definition of a single question-generation call."""

    model: str
    messages: List[Dict[str, Any]]
    categories: List[str]
    count: int
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class ProviderResponse:
    """Result of a provider request."""

    questions: List[Question]
    raw_response: Dict[str, Any]
    usage: Optional[Dict[str, Any]]
    json_capability_used: Optional[JsonCapability] = None


class ProviderError(RuntimeError):
    """Raised when a question provider encounters an error."""


class QuestionProvider(ABC):
    """Abstract base class for question providers."""

    @property
    @abstractmethod
    def json_capability(self) -> JsonCapability:
        """Return the JSON capability of this provider."""

    @abstractmethod
    def generate(self, request: ProviderRequest) -> ProviderResponse:
        """Call the provider API and validate the generated questions."""

    @abstractmethod
    def close(self) -> None:
        """Close any underlying connections."""

    def __enter__(self) -> "QuestionProvider":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class ProviderFactory:
    """Factory for creating question provider instances."""

    _providers: Dict[str, type[QuestionProvider]] = {}

    @classmethod
    def register(cls, name: str, provider_class: type[QuestionProvider]) -> None:
        """Register a provider class with the factory."""
        cls._providers[name] = provider_class

    @classmethod
    def create(cls, provider_name: str, **kwargs: Any) -> QuestionProvider:
        """Create a provider instance by name."""
        if provider_name not in cls._providers:
            raise ProviderError(f"Unknown provider: {provider_name}")

        provider_class = cls._providers[provider_name]
        return provider_class(**kwargs)

    @classmethod
    def list_providers(cls) -> List[str]:
        """List all registered provider names."""
        return list(cls._providers.keys())
