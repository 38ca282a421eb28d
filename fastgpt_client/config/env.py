"""fastgpt_client.config.env
=======================

Centralized environment variable names and helpers for client settings.

Purpose
-------
- Single source of truth for the environment variables that supply the
  connection settings (endpoint, app id, credential), retry overrides and
  timeout overrides.
- Small parsing helpers that never raise: unset or invalid values resolve
  to ``None`` (or the supplied default) and callers decide how to proceed.

Design Notes
------------
- Some settings historically accept more than one name; ``ENV_ALIASES``
  lists them with the canonical name first to establish precedence.
- No dependencies on other client packages.
"""

from __future__ import annotations

import os
from typing import Dict, Iterable, Mapping, Optional, Tuple

# Canonical setting -> env var mapping
ENV_MAP: Dict[str, str] = {
    "endpoint": "FASTGPT_BASE_URL",
    "app_id": "FASTGPT_APP_ID",
    "credential": "FASTGPT_API_KEY",
    "max_retries": "FASTGPT_MAX_RETRIES",
    "base_delay": "FASTGPT_RETRY_BASE_DELAY",
    "max_delay": "FASTGPT_RETRY_MAX_DELAY",
    "backoff_multiplier": "FASTGPT_RETRY_BACKOFF_MULTIPLIER",
    "connect_timeout": "FASTGPT_TIMEOUT_CONNECT_SECONDS",
    "read_timeout": "FASTGPT_TIMEOUT_READ_SECONDS",
    "exchange_timeout": "FASTGPT_TIMEOUT_EXCHANGE_SECONDS",
    "log_level": "FASTGPT_LOG_LEVEL",
}

# Setting -> ordered tuple of acceptable env var names (canonical first)
ENV_ALIASES: Dict[str, Tuple[str, ...]] = {
    "endpoint": ("FASTGPT_BASE_URL", "FASTGPT_ENDPOINT"),
}


def is_placeholder(val: Optional[str]) -> bool:
    """Return True if the provided string looks like a placeholder/test value.

    Heuristics: contains 'placeholder', 'changeme', 'example', or starts with
    'test_'. Case-insensitive and resilient to surrounding spaces.
    """
    if val is None:
        return False
    v = str(val).strip().lower()
    return (
        "placeholder" in v
        or "changeme" in v
        or "example" in v
        or v.startswith("test_")
    )


def get_env_var_candidates(setting: str) -> Iterable[str]:
    """Yield acceptable environment variable names for a setting.

    The canonical name is yielded first, followed by any aliases.
    """
    canonical = ENV_MAP.get(setting)
    if canonical:
        yield canonical
    for alias in ENV_ALIASES.get(setting, ()):  # pragma: no branch - small tuples
        if alias != canonical:
            yield alias


def get_setting(setting: str, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Return the first non-empty value for ``setting`` (or ``None``)."""
    env = os.environ if environ is None else environ
    for name in get_env_var_candidates(setting):
        val = env.get(name)
        if val and val.strip():
            return val.strip()
    return None


def get_float_setting(
    setting: str,
    environ: Optional[Mapping[str, str]] = None,
    *,
    allow_zero: bool = False,
) -> Optional[float]:
    """Parse a positive float setting; invalid or non-positive values give ``None``.

    With ``allow_zero`` an explicit ``0`` is accepted (delays may be zero,
    timeouts may not).
    """
    raw = get_setting(setting, environ)
    if raw is None:
        return None
    try:
        val = float(raw)
    except ValueError:
        return None
    if val > 0 or (allow_zero and val == 0):
        return val
    return None


def get_int_setting(setting: str, environ: Optional[Mapping[str, str]] = None) -> Optional[int]:
    """Parse a non-negative integer setting; invalid values give ``None``."""
    raw = get_setting(setting, environ)
    if raw is None:
        return None
    try:
        val = int(raw)
    except ValueError:
        return None
    return val if val >= 0 else None


def resolve_connection_settings(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Return ``endpoint``/``app_id``/``credential`` from the environment.

    Missing values resolve to empty strings so the configuration validator
    reports them with its usual messages.
    """
    return {
        key: get_setting(key, environ) or ""
        for key in ("endpoint", "app_id", "credential")
    }


__all__ = [
    "ENV_MAP",
    "ENV_ALIASES",
    "is_placeholder",
    "get_env_var_candidates",
    "get_setting",
    "get_float_setting",
    "get_int_setting",
    "resolve_connection_settings",
]
