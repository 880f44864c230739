"""
Centralized registry of question-generation providers and their available models.

Add new providers or models here to make them available in the HTTP config endpoint.
"""

from typing import Dict, List, TypedDict


class ProviderInfo(TypedDict):
    """Information about a question provider."""
    name: str
    display_name: str
    api_key_env: str
    models: List[str]


MODEL_REGISTRY: Dict[str, ProviderInfo] = {
    "openai": {
        "name": "openai",
        "display_name": "OpenAI",
        "api_key_env": "OPENAI_API_KEY",
        "models": [
            "gpt-4o-mini",
            "gpt-4o",
            "gpt-4.1-mini",
        ],
    },
    "anthropic": {
        "name": "anthropic",
        "display_name": "Anthropic",
        "api_key_env": "ANTHROPIC_API_KEY",
        "models": [
            "claude-3-5-sonnet-latest",
            "claude-3-5-haiku-latest",
        ],
    },
}


def get_all_providers() -> List[ProviderInfo]:
    """Get list of all available providers with their models."""
    return list(MODEL_REGISTRY.values())


def get_provider_models(provider_name: str) -> List[str]:
    """Get list of available models for a specific provider."""
    provider = MODEL_REGISTRY.get(provider_name)
    return provider["models"] if provider else []
