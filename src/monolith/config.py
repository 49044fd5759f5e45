# src/monolith/config.py
"""Configuration management for Monolith.

Settings come from environment variables, each with a typed getter and a default.
These functions take an env object (a mapping such as ``os.environ`` or any
object exposing settings as attributes) and return configuration values.
"""

import os
from collections.abc import Mapping
from typing import Any

from monolith.utils import log_op

# =============================================================================
# Constants
# =============================================================================

# Timeouts
HTTP_TIMEOUT_SECONDS = 10  # Video metadata request timeout

# User agent for video metadata requests
USER_AGENT = "Monolith/1.0"

# Video metadata cache
DEFAULT_VIDEO_CACHE_TTL_SECONDS = 3600

# Telephone numbers with a leading zero get this country code
DEFAULT_COUNTRY_CODE = "+44"

# Tail sampling rate for successful, fast wide events
DEFAULT_EVENT_SAMPLE_RATE = 0.10


# =============================================================================
# Configuration Getters
# =============================================================================


def _lookup(env: Any, env_key: str) -> Any:
    """Read a raw setting from a mapping or an attribute-style env object."""
    if env is None:
        env = os.environ
    if isinstance(env, Mapping):
        return env.get(env_key)
    return getattr(env, env_key, None)


def get_config_value(
    env: Any,
    env_key: str,
    default: int | float,
    value_type: type[int] | type[float] = int,
) -> int | float:
    """Read a numeric setting, falling back to default when unset or invalid.

    Invalid values are logged as ``config_validation_error`` events.

    Args:
        env: Mapping or attribute object holding settings (None = os.environ)
        env_key: Setting name, e.g. MONOLITH_HTTP_TIMEOUT
        default: Value used when the setting is missing, empty or invalid
        value_type: int or float
    """
    raw = _lookup(env, env_key)
    if not raw:
        return default

    try:
        return value_type(raw)
    except (ValueError, TypeError) as e:
        log_op("config_validation_error", config_key=env_key, value=str(raw), error=str(e))
        return default


def get_string_value(env: Any, env_key: str, default: str | None) -> str | None:
    """Get a string setting, treating empty values as unset."""
    value = _lookup(env, env_key)
    if value is None or not str(value).strip():
        return default
    return str(value).strip()


# =============================================================================
# Config Registry
# =============================================================================

# Integer settings by name: (environment key, default)
_INT_CONFIG_REGISTRY: dict[str, tuple[str, int]] = {
    "http_timeout": ("MONOLITH_HTTP_TIMEOUT", HTTP_TIMEOUT_SECONDS),
    "video_cache_ttl": ("MONOLITH_VIDEO_CACHE_TTL", DEFAULT_VIDEO_CACHE_TTL_SECONDS),
}


def _get_int_config(env: Any, config_name: str) -> int:
    """Look up an integer setting by its registry name."""
    env_key, default = _INT_CONFIG_REGISTRY[config_name]
    return int(get_config_value(env, env_key, default))


def get_http_timeout(env: Any = None) -> int:
    """Seconds to wait for video metadata requests."""
    return _get_int_config(env, "http_timeout")


def get_video_cache_ttl(env: Any = None) -> int:
    """Get how long downloaded video metadata stays fresh, in seconds."""
    return _get_int_config(env, "video_cache_ttl")


def get_video_cache_dir(env: Any = None) -> str | None:
    """Get the directory used to cache video metadata, if any."""
    return get_string_value(env, "MONOLITH_VIDEO_CACHE_DIR", None)


def get_default_country_code(env: Any = None) -> str:
    """Get the country code used for machine-readable telephone numbers."""
    return get_string_value(env, "MONOLITH_DEFAULT_COUNTRY_CODE", DEFAULT_COUNTRY_CODE)


def get_event_sample_rate(env: Any = None) -> float:
    """Get the tail sampling rate for successful wide events."""
    rate = float(
        get_config_value(env, "MONOLITH_EVENT_SAMPLE_RATE", DEFAULT_EVENT_SAMPLE_RATE, float)
    )
    return min(max(rate, 0.0), 1.0)
