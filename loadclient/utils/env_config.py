"""Environment variable overrides for the load-test client configuration.

Variables follow the pattern ``LOADCLIENT_{PATH_TO_PROPERTY}``: path components
are joined with underscores and upper-cased.

Examples:
    LOADCLIENT_SYSTEM_LOG_LEVEL=DEBUG
    LOADCLIENT_POLICY_STAGE_VIEW=true
    LOADCLIENT_CLIENTS_NUM_CLIENTS=25
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Mapping

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "LOADCLIENT"

_TRUE_VALUES = ("true", "yes", "1", "on")
_FALSE_VALUES = ("false", "no", "0", "off")


class EnvConfigError(ConfigurationError):
    """Raised when an environment override cannot be applied."""


def parse_env_value(value: str, existing_value: Any) -> Any:
    """Parse an environment string using the existing config value's type.

    Examples:
        >>> parse_env_value("true", False)
        True
        >>> parse_env_value("25", 1)
        25
        >>> parse_env_value("", -1) is None
        True
    """
    if value == "" or value.lower() in ("null", "none"):
        return None

    target_type = type(existing_value) if existing_value is not None else str

    if target_type is bool:
        lowered = value.lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise EnvConfigError(
            f"Cannot parse '{value}' as boolean. "
            f"Valid values: true/false, yes/no, 1/0, on/off (case-insensitive)"
        )

    if target_type is int:
        try:
            return int(value)
        except ValueError as exc:
            raise EnvConfigError(f"Cannot parse '{value}' as integer") from exc

    if target_type is float:
        try:
            return float(value)
        except ValueError as exc:
            raise EnvConfigError(f"Cannot parse '{value}' as float") from exc

    if target_type is dict:
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError as exc:
            raise EnvConfigError(f"Cannot parse '{value}' as JSON dict") from exc
        if not isinstance(parsed, dict):
            raise EnvConfigError(f"Expected JSON dict, got {type(parsed).__name__}")
        return parsed

    return value


def env_var_name(path: List[str], prefix: str = ENV_PREFIX) -> str:
    """
    >>> env_var_name(["frame_heights", "stage"])
    'LOADCLIENT_FRAME_HEIGHTS_STAGE'
    """
    return "_".join(part.upper() for part in [prefix, *path])


def apply_env_overrides(
    config_dict: Mapping[str, Any],
    prefix: str = ENV_PREFIX,
    path: List[str] | None = None,
) -> Dict[str, Any]:
    """Recursively apply environment overrides to a config dict.

    Nested dicts are walked; list values (such as tier tables) are never
    overridden from the environment.

    Raises:
        EnvConfigError: If an environment value cannot be parsed.
    """
    path = path or []
    result = dict(config_dict)

    for key, value in result.items():
        current_path = path + [str(key)]

        if isinstance(value, list):
            continue

        if isinstance(value, Mapping):
            result[key] = apply_env_overrides(value, prefix, current_path)
            continue

        name = env_var_name(current_path, prefix)
        raw = os.environ.get(name)
        if raw is None:
            continue

        try:
            result[key] = parse_env_value(raw, value)
        except EnvConfigError as exc:
            raise EnvConfigError(f"Failed to parse environment variable {name}: {exc}") from exc
        logger.info(
            "config_override_from_env var=%s value_type=%s path=%s",
            name,
            type(result[key]).__name__,
            ".".join(current_path),
        )

    return result


__all__ = ["ENV_PREFIX", "EnvConfigError", "apply_env_overrides", "env_var_name", "parse_env_value"]
