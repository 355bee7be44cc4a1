"""Configuration loader with hierarchical merge and validation."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from cosmos_repository.config.errors import (
    ConfigFileNotFoundError,
    ConfigValidationError,
)
from cosmos_repository.config.models import AppSettings
from cosmos_repository.config.placeholders import resolve_placeholders

DEFAULT_CONFIG_DIR = Path("config")
DEFAULT_BASE_FILE = "appsettings.json"
ENV_VAR_NAME = "COSMOS_REPOSITORY_ENV"
DEFAULT_ENV = "development"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries. Override values take precedence.

    Neither input is mutated; a new dictionary is returned.
    """
    merged = base.copy()

    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value

    return merged


def load_json_file(path: Path) -> dict[str, Any]:
    """Load and parse a JSON configuration file.

    Raises:
        ConfigFileNotFoundError: If the file does not exist.
    """
    if not path.exists():
        raise ConfigFileNotFoundError(str(path))

    with path.open(encoding="utf-8") as f:
        return json.load(f)


def load_config(
    *,
    config_dir: Path | str | None = None,
    env: str | None = None,
    strict_placeholders: bool = True,
) -> AppSettings:
    """Load application configuration with hierarchical merging.

    Sources, later ones overriding earlier ones:
    1. ``<config_dir>/appsettings.json``
    2. ``<config_dir>/appsettings.<env>.json`` when present
    3. ``${ENV_VAR}`` placeholder resolution

    Args:
        config_dir: Directory containing configuration files. Defaults to "config".
        env: Environment name. Defaults to COSMOS_REPOSITORY_ENV or "development".
        strict_placeholders: If True, raise error for unresolved placeholders.

    Raises:
        ConfigFileNotFoundError: If the base configuration file is not found.
        ConfigValidationError: If configuration validation fails.
        PlaceholderResolutionError: If strict_placeholders=True and a placeholder
            cannot be resolved.
    """
    directory = DEFAULT_CONFIG_DIR if config_dir is None else Path(config_dir)
    if env is None:
        env = os.environ.get(ENV_VAR_NAME, DEFAULT_ENV)

    config = load_json_file(directory / DEFAULT_BASE_FILE)

    env_path = directory / f"appsettings.{env}.json"
    if env_path.exists():
        config = deep_merge(config, load_json_file(env_path))

    config = resolve_placeholders(config, strict=strict_placeholders)

    try:
        return AppSettings.model_validate(config)
    except ValidationError as e:
        errors = [
            {"loc": " -> ".join(str(loc) for loc in err["loc"]), "msg": err["msg"]}
            for err in e.errors()
        ]
        raise ConfigValidationError(errors) from e
