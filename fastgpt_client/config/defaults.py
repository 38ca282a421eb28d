"""fastgpt_client.config.defaults
============================

Central place for small, stable default values used across the client.
These defaults can be overridden via environment variables (see
``fastgpt_client.config.env``) or explicit constructor arguments.

This module intentionally avoids importing from other client packages to
prevent circular dependencies. Only plain constants live here.
"""

from __future__ import annotations

# ---- Wire protocol ----
# Path appended to the normalized ``{endpoint}/api`` base.
CHAT_COMPLETIONS_PATH = "/v1/chat/completions"
# Segment inserted when the endpoint does not already contain it.
API_SEGMENT = "api"
# SSE field marker and stream terminator.
SSE_DATA_PREFIX = "data:"
SSE_DONE_SENTINEL = "[DONE]"

# ---- Retry policy (seconds) ----
DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY_SECONDS = 1.0
DEFAULT_MAX_DELAY_SECONDS = 10.0
DEFAULT_BACKOFF_MULTIPLIER = 2.0
# Upper bound of the uniform jitter, as a fraction of the computed delay.
RETRY_JITTER_RATIO = 0.1

# ---- Timeouts (seconds) ----
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0
DEFAULT_READ_TIMEOUT_SECONDS = 60.0

# ---- Connection test ----
CONNECTION_TEST_PROMPT = "test connection"

# ---- CLI ----
CLI_PROG_NAME = "fastgpt-client"


__all__ = [
    "CHAT_COMPLETIONS_PATH",
    "API_SEGMENT",
    "SSE_DATA_PREFIX",
    "SSE_DONE_SENTINEL",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_BASE_DELAY_SECONDS",
    "DEFAULT_MAX_DELAY_SECONDS",
    "DEFAULT_BACKOFF_MULTIPLIER",
    "RETRY_JITTER_RATIO",
    "DEFAULT_CONNECT_TIMEOUT_SECONDS",
    "DEFAULT_READ_TIMEOUT_SECONDS",
    "CONNECTION_TEST_PROMPT",
    "CLI_PROG_NAME",
]
