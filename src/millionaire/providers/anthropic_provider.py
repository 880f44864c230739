"""Anthropic provider using the OpenAI-compatible endpoint."""

from __future__ import annotations

from typing import Any, Optional

from .openai_provider import OpenAIProvider
from .providers import JsonCapability, ProviderFactory, ProviderRequest

DEFAULT_BASE_URL = "https://api.anthropic.com/v1/"
DEFAULT_MODEL = "claude-3-5-sonnet-latest"
DEFAULT_MAX_TOKENS = 4000


class AnthropicProvider(OpenAIProvider):
    """Claude models. Replies are free text, so the JSON object is cut out of the reply."""

    provider_name = "anthropic"
    api_key_env = "ANTHROPIC_API_KEY"
    default_base_url = DEFAULT_BASE_URL

    @property
    def json_capability(self) -> JsonCapability:
        return JsonCapability.NONE

    def _max_tokens(self, request: ProviderRequest) -> Optional[int]:
        return request.max_tokens or DEFAULT_MAX_TOKENS

    def _decode_json(self, text: str) -> Any:
        start = text.find("{")
        end = text.rfind("}")
        if start == -1 or end <= start:
            raise ValueError("No valid JSON found in Anthropic response")
        return super()._decode_json(text[start:end + 1])


ProviderFactory.register("anthropic", AnthropicProvider)
