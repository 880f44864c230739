"""OpenAI chat-completions provider for question generation."""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

import orjson
import structlog
from dotenv import load_dotenv
from openai import OpenAI

from ..core.schemas import Question, SchemaValidationError, validate_questions
from .providers import (
    JsonCapability,
    ProviderError,
    ProviderFactory,
    ProviderRequest,
    ProviderResponse,
    QuestionProvider,
)

load_dotenv()

LOGGER = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TIMEOUT = 60.0


class OpenAIProvider(QuestionProvider):
    """Thin wrapper around OpenAI chat completions returning validated questions."""

    provider_name = "openai"
    api_key_env = "OPENAI_API_KEY"
    default_base_url = DEFAULT_BASE_URL

    @property
    def json_capability(self) -> JsonCapability:
        return JsonCapability.JSON_OBJECT

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[Any] = None,
        **kwargs: Any,
    ) -> None:
        self.api_key = api_key or os.getenv(self.api_key_env)
        if not self.api_key and client is None:
            raise ProviderError(f"{self.api_key_env} is not set")

        self.base_url = (base_url or self.default_base_url).rstrip("/")
        self.timeout = timeout
        self._client = client or OpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            **kwargs,
        )

    def close(self) -> None:
        """Close the underlying OpenAI client."""
        self._client.close()

    def generate(self, request: ProviderRequest) -> ProviderResponse:
        """Request questions from the API and validate them."""

        logger = LOGGER.bind(provider=self.provider_name, model=request.model, count=request.count)

        create_kwargs: Dict[str, Any] = {
            "model": request.model,
            "messages": request.messages,
            **dict(request.metadata.get("options", {})),
        }
        if request.temperature is not None:
            create_kwargs["temperature"] = request.temperature
        max_tokens = self._max_tokens(request)
        if max_tokens is not None:
            create_kwargs["max_tokens"] = max_tokens
        if self.json_capability == JsonCapability.JSON_OBJECT:
            create_kwargs["response_format"] = {"type": "json_object"}

        try:
            response = self._client.chat.completions.create(**create_kwargs)
        except Exception as exc:
            logger.error("provider.api_error", error=str(exc))
            raise ProviderError(f"{self.provider_name} API error: {exc}") from exc

        raw_response = response.model_dump()

        try:
            questions = self._parse_payload(raw_response)
        except SchemaValidationError as exc:
            logger.warning("provider.schema_validation_failed", errors=exc.errors)
            raise
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("provider.payload_parse_failed", error=str(exc))
            raise ProviderError(f"Failed to parse {self.provider_name} payload: {exc}") from exc

        logger.info("provider.call_success", usage=raw_response.get("usage"), received=len(questions))

        return ProviderResponse(
            questions=questions,
            raw_response=raw_response,
            usage=raw_response.get("usage"),
            json_capability_used=self.json_capability,
        )

    # Internal helpers ------------------------------------------------------------------

    def _max_tokens(self, request: ProviderRequest) -> Optional[int]:
        return request.max_tokens

    def _parse_payload(self, data: Dict[str, Any]) -> List[Question]:
        choices = data.get("choices")
        if not choices or not choices[0]:
            raise ValueError("Response missing 'choices' or choices[0] is None")
        message = choices[0].get("message")
        if not message:
            raise ValueError("Response missing 'message'")
        content = message.get("content")
        if content is None:
            raise ValueError("Response missing 'content'")

        parsed = self._decode_json(self._extract_content_text(content))
        if not isinstance(parsed, dict):
            raise SchemaValidationError(self.provider_name, ["Response must be a JSON object"])
        return validate_questions(parsed.get("questions"), source=self.provider_name)

    def _decode_json(self, text: str) -> Any:
        try:
            return orjson.loads(text)
        except orjson.JSONDecodeError as exc:
            raise ValueError(f"Content was not valid JSON: {exc}") from exc

    @staticmethod
    def _extract_content_text(content: Any) -> str:
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            fragments = []
            for item in content:
                if isinstance(item, dict):
                    text = item.get("text") or item.get("content")
                    if isinstance(text, str):
                        fragments.append(text)
                elif isinstance(item, str):
                    fragments.append(item)
            if fragments:
                return "".join(fragments)
        raise ValueError("Unsupported content format")


ProviderFactory.register("openai", OpenAIProvider)
