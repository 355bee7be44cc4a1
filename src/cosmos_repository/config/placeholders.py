"""Environment variable placeholder resolution for config files."""

from __future__ import annotations

import os
import re
from typing import Any

from cosmos_repository.config.errors import PlaceholderResolutionError

PLACEHOLDER_PATTERN = re.compile(r"\$\{([^}]+)\}")


def resolve_placeholders(
    data: dict[str, Any],
    *,
    strict: bool = True,
    _path: str = "",
) -> dict[str, Any]:
    """Return a copy of ``data`` with ``${ENV_VAR}`` placeholders substituted.

    Nested mappings are walked recursively and list items are resolved one by
    one. With ``strict=False`` an unset variable leaves the placeholder text in
    place instead of raising ``PlaceholderResolutionError``.
    """
    resolved: dict[str, Any] = {}

    for key, value in data.items():
        key_path = f"{_path}.{key}" if _path else key

        if isinstance(value, dict):
            resolved[key] = resolve_placeholders(value, strict=strict, _path=key_path)
        elif isinstance(value, list):
            resolved[key] = [
                _resolve_value(item, f"{key_path}[{index}]", strict)
                for index, item in enumerate(value)
            ]
        else:
            resolved[key] = _resolve_value(value, key_path, strict)

    return resolved


def _resolve_value(value: Any, path: str, strict: bool) -> Any:
    if not isinstance(value, str):
        return value

    def substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        env_value = os.environ.get(name)
        if env_value is not None:
            return env_value
        if strict:
            raise PlaceholderResolutionError(f"${{{name}}}", path)
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(substitute, value)
