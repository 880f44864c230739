"""Question provider implementations."""

from . import anthropic_provider, openai_provider, prompts, providers, question_source

# Ensure all providers are imported so they can self-register
_ = (anthropic_provider, openai_provider)

__all__ = [
    "anthropic_provider",
    "openai_provider",
    "prompts",
    "providers",
    "question_source",
]
