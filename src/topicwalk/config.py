"""Environment-driven configuration.

Precedence: process environment > ``.env`` file > default.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path

from dotenv import dotenv_values
from pydantic import BaseModel, Field, ValidationError, field_validator

from .cache import DEFAULT_MAX_ENTRIES, DEFAULT_TTL_SECONDS
from .errors import ConfigError
from .llm import DEFAULT_API_URL, DEFAULT_MODEL, DEFAULT_TIMEOUT_SECONDS

API_KEY_PATTERN = re.compile(r"^sk-ant-[A-Za-z0-9_\-]+$")

DEFAULT_CORS_ORIGINS = ["http://localhost:3000"]

# field name -> environment variable
ENV_VARS = {
    "api_key": "CLAUDE_API_KEY",
    "api_url": "CLAUDE_API_URL",
    "model": "TOPICWALK_MODEL",
    "max_tokens": "TOPICWALK_MAX_TOKENS",
    "temperature": "TOPICWALK_TEMPERATURE",
    "timeout": "TOPICWALK_TIMEOUT",
    "cache_size": "TOPICWALK_CACHE_SIZE",
    "cache_ttl": "TOPICWALK_CACHE_TTL",
    "cors_origins": "TOPICWALK_CORS_ORIGINS",
}


class ExplorerConfig(BaseModel):
    """Runtime settings for the service and CLI."""

    api_key: str
    """Anthropic API key; must look like ``sk-ant-...``."""

    api_url: str = DEFAULT_API_URL
    """Messages API endpoint."""

    model: str = DEFAULT_MODEL
    max_tokens: int = Field(default=5000, gt=0)
    temperature: float = Field(default=0.9, ge=0.0, le=1.0)

    timeout: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    """Hard bound on one upstream call, in seconds."""

    cache_size: int = Field(default=DEFAULT_MAX_ENTRIES, gt=0)
    cache_ttl: float = Field(default=DEFAULT_TTL_SECONDS, gt=0)

    cors_origins: list[str] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    """Origins allowed to call the API from a browser."""

    @field_validator("api_key")
    @classmethod
    def _check_api_key(cls, value: str) -> str:
        value = value.strip()
        if not API_KEY_PATTERN.match(value):
            raise ValueError("must be an Anthropic key starting with 'sk-ant-'")
        return value

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: object) -> object:
        if isinstance(value, str):
            return [o.strip() for o in value.split(",") if o.strip()]
        return value


def load_config(
    env: Mapping[str, str] | None = None,
    dotenv_path: Path | None = None,
) -> ExplorerConfig:
    """Build an ExplorerConfig from *env* (default ``os.environ``) and ``.env``.

    Raises ``ConfigError`` when the API key is missing or any value is
    malformed.
    """
    values: dict[str, str | None] = {}
    path = dotenv_path if dotenv_path is not None else Path.cwd() / ".env"
    if path.is_file():
        values.update(dotenv_values(path))
    values.update(os.environ if env is None else env)

    raw: dict[str, str] = {}
    for field_name, var in ENV_VARS.items():
        value = values.get(var)
        if value is not None and value.strip():
            raw[field_name] = value.strip()

    if "api_key" not in raw:
        raise ConfigError(f"{ENV_VARS['api_key']} environment variable is not set")

    try:
        return ExplorerConfig.model_validate(raw)
    except ValidationError as exc:
        problems = "; ".join(
            f"{ENV_VARS.get(str(err['loc'][0]), err['loc'][0])}: {err['msg']}"
            for err in exc.errors()
        )
        raise ConfigError(f"Invalid configuration: {problems}") from exc
