"""Engine and CLI settings.

Sources, lowest priority first:
  1. _CONFIG_DEFAULTS below
  2. a JSON file (only when a path is given)
  3. environment variables (TABLEWALK_*; callers load .env beforehand)

Command-line flags are applied on top by the CLI itself.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError

from tablewalk.errors import ConfigurationError

DEFAULT_MAX_STEPS = 1000

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
OutputFormat = Literal["text", "json"]

_CONFIG_DEFAULTS: dict[str, Any] = {
    "max_steps": DEFAULT_MAX_STEPS,
    "seed": None,
    "log_level": "WARNING",
    "output_format": "text",
}

_ENV_KEYS = {
    "TABLEWALK_MAX_STEPS": "max_steps",
    "TABLEWALK_SEED": "seed",
    "TABLEWALK_LOG_LEVEL": "log_level",
    "TABLEWALK_FORMAT": "output_format",
}


class EngineConfig(BaseModel):
    """Validated settings for one tablewalk invocation."""

    model_config = {"frozen": True, "extra": "forbid"}

    max_steps: int | None = Field(default=DEFAULT_MAX_STEPS, ge=1)
    seed: int | str | None = None
    log_level: LogLevel = "WARNING"
    output_format: OutputFormat = "text"


def _from_env(env: Mapping[str, str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for env_key, field in _ENV_KEYS.items():
        raw = env.get(env_key)
        if raw is None or raw == "":
            continue
        if field == "max_steps":
            values[field] = None if raw.strip().lower() in ("0", "none") else raw
        elif field == "log_level":
            values[field] = raw.strip().upper()
        else:
            values[field] = raw
    return values


def load_config(path: Path | None = None, env: Mapping[str, str] | None = None) -> EngineConfig:
    """Merge defaults, an optional JSON file and the environment."""
    merged: dict[str, Any] = dict(_CONFIG_DEFAULTS)

    if path is not None:
        if not path.is_file():
            raise ConfigurationError(f"Config file not found: {path}")
        try:
            stored = json.loads(path.read_text())
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Config file {path} is not valid JSON: {e}") from e
        if not isinstance(stored, dict):
            raise ConfigurationError(f"Config file {path} must hold a JSON object")
        merged.update(stored)

    merged.update(_from_env(os.environ if env is None else env))

    try:
        return EngineConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
