"""Configuration helpers: defaults and environment resolution."""

from .defaults import (
    CHAT_COMPLETIONS_PATH,
    DEFAULT_BACKOFF_MULTIPLIER,
    DEFAULT_BASE_DELAY_SECONDS,
    DEFAULT_MAX_DELAY_SECONDS,
    DEFAULT_MAX_RETRIES,
)
from .env import (
    ENV_MAP,
    is_placeholder,
    get_setting,
    get_float_setting,
    get_int_setting,
    resolve_connection_settings,
)

__all__ = [
    "CHAT_COMPLETIONS_PATH",
    "DEFAULT_BACKOFF_MULTIPLIER",
    "DEFAULT_BASE_DELAY_SECONDS",
    "DEFAULT_MAX_DELAY_SECONDS",
    "DEFAULT_MAX_RETRIES",
    "ENV_MAP",
    "is_placeholder",
    "get_setting",
    "get_float_setting",
    "get_int_setting",
    "resolve_connection_settings",
]
