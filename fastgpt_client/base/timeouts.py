"""Unified timeout settings for the client.

This module centralizes the timeout values used by the transport and the
streaming layer.

Key Components
--------------
TimeoutConfig
    Dataclass capturing normalized timeout values and converting them to an
    ``httpx.Timeout``.

get_timeout_config()
    Returns a process-cached configuration, parsing environment overrides on
    first use (and again whenever the relevant variables change):
        FASTGPT_TIMEOUT_CONNECT_SECONDS
        FASTGPT_TIMEOUT_READ_SECONDS
        FASTGPT_TIMEOUT_EXCHANGE_SECONDS

Design Constraints
------------------
1. No hard-coded ad-hoc timeouts outside this module and ``config.defaults``.
2. Avoid per-call env parsing (cache after first read).
3. The exchange deadline is enforced cooperatively through a
   ``CancellationToken`` timer, never with signals.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

import httpx

from ..config.defaults import DEFAULT_CONNECT_TIMEOUT_SECONDS, DEFAULT_READ_TIMEOUT_SECONDS
from ..config.env import ENV_MAP, get_float_setting


@dataclass(frozen=True)
class TimeoutConfig:
    """Container for normalized timeout values (seconds).

    Attributes:
        connect_timeout_seconds: Time allowed to establish the connection.
        read_timeout_seconds: Idle time allowed between two reads of the
            response (headers or the next stream chunk).
        exchange_timeout_seconds: Optional absolute deadline for one streamed
            exchange; ``None`` disables it.
    """

    connect_timeout_seconds: float = DEFAULT_CONNECT_TIMEOUT_SECONDS
    read_timeout_seconds: float = DEFAULT_READ_TIMEOUT_SECONDS
    exchange_timeout_seconds: Optional[float] = None

    def to_httpx(self) -> httpx.Timeout:
        """Return the equivalent ``httpx.Timeout``."""
        return httpx.Timeout(
            self.read_timeout_seconds,
            connect=self.connect_timeout_seconds,
        )


_CACHED: TimeoutConfig | None = None
_ENV_GUARD: str | None = None

_GUARDED_SETTINGS = ("connect_timeout", "read_timeout", "exchange_timeout")


def get_timeout_config() -> TimeoutConfig:
    """Return the process-cached ``TimeoutConfig`` instance."""
    global _CACHED, _ENV_GUARD  # noqa: PLW0603 - documented module cache
    cur_guard = "/".join(os.getenv(ENV_MAP[s], "") for s in _GUARDED_SETTINGS)
    if _CACHED is not None and _ENV_GUARD == cur_guard:
        return _CACHED

    _CACHED = TimeoutConfig(
        connect_timeout_seconds=get_float_setting("connect_timeout") or DEFAULT_CONNECT_TIMEOUT_SECONDS,
        read_timeout_seconds=get_float_setting("read_timeout") or DEFAULT_READ_TIMEOUT_SECONDS,
        exchange_timeout_seconds=get_float_setting("exchange_timeout"),
    )
    _ENV_GUARD = cur_guard
    return _CACHED


__all__ = [
    "TimeoutConfig",
    "get_timeout_config",
]
