"""Runtime configuration for question generation and presentation timing."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import orjson

DEFAULT_CONFIG_PATH = Path("config/config.local.json")
DEFAULT_PROVIDER = "openai"
DEFAULT_MODELS: Dict[str, str] = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-3-5-sonnet-latest",
}
PROVIDER_ENV = "MILLIONAIRE_PROVIDER"


class ConfigError(ValueError):
    """Raised when the configuration file cannot be used."""


@dataclass
class RequestConfig:
    """Parameters passed through to the generation call."""

    temperature: Optional[float] = 0.8
    max_tokens: Optional[int] = None
    timeout: float = 60.0
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class GameConfig:
    """Top-level configuration loaded once at startup."""

    default_provider: str = DEFAULT_PROVIDER
    models: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_MODELS))
    base_urls: Dict[str, str] = field(default_factory=dict)
    request: RequestConfig = field(default_factory=RequestConfig)
    info_message_seconds: float = 3.0
    answer_reveal_seconds: float = 5.0
    offline: bool = False

    def model_for(self, provider: Optional[str] = None) -> str:
        name = provider or self.default_provider
        return self.models.get(name) or DEFAULT_MODELS.get(name, DEFAULT_MODELS[DEFAULT_PROVIDER])

    def base_url_for(self, provider: Optional[str] = None) -> Optional[str]:
        return self.base_urls.get(provider or self.default_provider)


def _as_float(value: Any, key: str, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"'{key}' must be a number, got {value!r}") from exc


def load_game_config(path: Path = DEFAULT_CONFIG_PATH) -> GameConfig:
    """Load configuration from disk, falling back to defaults.

    A missing file yields the defaults. ``MILLIONAIRE_PROVIDER`` in the environment
    overrides ``default_provider``.
    """

    if not path.exists():
        data: Dict[str, Any] = {}
    else:
        try:
            data = orjson.loads(path.read_bytes())
        except orjson.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"{path} must contain a JSON object")

    models = dict(DEFAULT_MODELS)
    models.update({str(k): str(v) for k, v in (data.get("models") or {}).items()})

    base_urls = {str(k): str(v) for k, v in (data.get("base_urls") or {}).items()}

    request_cfg = data.get("request", {}) or {}
    max_tokens = request_cfg.get("max_tokens")
    request = RequestConfig(
        temperature=request_cfg.get("temperature", 0.8),
        max_tokens=int(max_tokens) if max_tokens is not None else None,
        timeout=_as_float(request_cfg.get("timeout"), "request.timeout", 60.0),
        # Any leftover keys become generic request options (e.g. top_p)
        options={
            str(k): v
            for k, v in request_cfg.items()
            if k not in {"temperature", "max_tokens", "timeout"}
        },
    )

    default_provider = os.getenv(PROVIDER_ENV) or str(data.get("default_provider", DEFAULT_PROVIDER))

    return GameConfig(
        default_provider=default_provider,
        models=models,
        base_urls=base_urls,
        request=request,
        info_message_seconds=_as_float(data.get("info_message_seconds"), "info_message_seconds", 3.0),
        answer_reveal_seconds=_as_float(data.get("answer_reveal_seconds"), "answer_reveal_seconds", 5.0),
        offline=bool(data.get("offline", False)),
    )
