"""Configuration loading and credential resolution.

The config file is read once at startup and never written by the app.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any, TypeVar

from platformdirs import user_config_dir

from htb_browser.errors import MissingCredentialsError
from htb_browser.models import (
    CONFIG_APP_NAME,
    DEFAULT_API_KEY_ENV,
    DEFAULT_PER_PAGE,
    DEFAULT_REQUEST_TIMEOUT,
    HTB_API_URL,
    MAX_PER_PAGE,
    MAX_REQUEST_TIMEOUT,
    FilterMode,
    SortMode,
    UserConfig,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Configuration Loading
# ============================================================================
#
# Validation contract: _dict_to_config() guarantees valid output for any input.
#
#   Field                    Rule                        Handler
#   ───────────────────────  ──────────────────────────  ─────────────────
#   request_timeout_seconds  1 ≤ x ≤ MAX_REQUEST_TIMEOUT _clamped_int
#   per_page                 1 ≤ x ≤ MAX_PER_PAGE        _clamped_int
#   auto_refresh_seconds     x ≥ 0                       _clamped_int
#   default_filter/sort      enum value                  _parse_enum
#   scalar fields            type-checked                _safe_get
#
CONFIG_FILENAME = "config.json"
API_URL_ENV = "HTB_API_URL"

_E = TypeVar("_E", bound=Enum)


def get_config_path() -> Path:
    """Get the path to the configuration file.

    Uses platformdirs for cross-platform config directory:
    - Linux: ~/.config/htb-browser/config.json
    - macOS: ~/Library/Application Support/htb-browser/config.json
    - Windows: %APPDATA%/htb-browser/config.json
    """
    config_dir = Path(user_config_dir(CONFIG_APP_NAME))
    return config_dir / CONFIG_FILENAME


def _safe_get(data: dict, key: str, default: Any, expected_type: type) -> Any:
    """Safely get a value from dict with type validation.

    Returns the default if key is missing or value has wrong type.
    """
    value = data.get(key, default)
    if not isinstance(value, expected_type):
        return default
    # bool is an int subclass; a JSON true is not a valid count
    if expected_type is int and isinstance(value, bool):
        return default
    return value


def _clamped_int(
    data: dict, key: str, default: int, minimum: int, maximum: int | None = None
) -> int:
    value = _safe_get(data, key, default, int)
    value = max(minimum, value)
    if maximum is not None:
        value = min(maximum, value)
    return value


def _parse_enum(data: dict, key: str, enum_cls: type[_E], default: _E) -> _E:
    raw = data.get(key)
    if not isinstance(raw, str):
        return default
    try:
        return enum_cls(raw)
    except ValueError:
        logger.warning("Ignoring unknown %s %r in config", key, raw)
        return default


def _dict_to_config(data: dict[str, Any]) -> UserConfig:
    """Deserialize a dictionary to UserConfig with type validation."""
    if not isinstance(data, dict):
        raise TypeError("config root must be an object")
    return UserConfig(
        api_url=_safe_get(data, "api_url", HTB_API_URL, str).rstrip("/") or HTB_API_URL,
        api_key_env=_safe_get(data, "api_key_env", DEFAULT_API_KEY_ENV, str)
        or DEFAULT_API_KEY_ENV,
        request_timeout_seconds=_clamped_int(
            data, "request_timeout_seconds", DEFAULT_REQUEST_TIMEOUT, 1, MAX_REQUEST_TIMEOUT
        ),
        include_retired=_safe_get(data, "include_retired", True, bool),
        per_page=_clamped_int(data, "per_page", DEFAULT_PER_PAGE, 1, MAX_PER_PAGE),
        default_filter=_parse_enum(data, "default_filter", FilterMode, FilterMode.NONE),
        default_sort=_parse_enum(data, "default_sort", SortMode, SortMode.DIFFICULTY),
        refresh_after_action=_safe_get(data, "refresh_after_action", True, bool),
        auto_refresh_seconds=_clamped_int(data, "auto_refresh_seconds", 0, 0),
        ascii_icons=_safe_get(data, "ascii_icons", False, bool),
        theme_name=_safe_get(data, "theme_name", "monokai", str),
        version=_safe_get(data, "version", 1, int),
    )


def load_config() -> UserConfig:
    """Load configuration from disk.

    Returns default config if file doesn't exist or is corrupted; in the
    corrupted case ``config_defaulted`` is set so the UI can warn.
    """
    config_path = get_config_path()

    if not config_path.exists():
        return UserConfig()

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
        return _dict_to_config(data)
    except json.JSONDecodeError as e:
        logger.warning("Config file has invalid JSON, using defaults: %s", e)
    except (KeyError, TypeError) as e:
        logger.warning("Config file has invalid structure, using defaults: %s", e)
    except OSError as e:
        logger.warning("Could not read config file, using defaults: %s", e)
    return UserConfig(config_defaulted=True)


def apply_env_overrides(config: UserConfig, environ: Mapping[str, str] | None = None) -> None:
    """Let ``HTB_API_URL`` override the configured base URL."""
    env = os.environ if environ is None else environ
    api_url = env.get(API_URL_ENV, "").strip()
    if api_url:
        config.api_url = api_url.rstrip("/")


def resolve_api_key(config: UserConfig, environ: Mapping[str, str] | None = None) -> str:
    """Return the bearer token from the configured environment variable.

    Raises:
        MissingCredentialsError: When the variable is unset or blank.
    """
    env = os.environ if environ is None else environ
    token = env.get(config.api_key_env, "").strip()
    if not token:
        raise MissingCredentialsError(f"{config.api_key_env} is not set")
    return token


__all__ = [
    "API_URL_ENV",
    "CONFIG_FILENAME",
    "apply_env_overrides",
    "get_config_path",
    "load_config",
    "resolve_api_key",
]
