"""Response helpers for the FastGPT client.

Purpose:
- Parse non-streaming completion bodies into the typed DTO.
- Map classified errors to the user-facing messages shown by front ends.

Notes:
- These helpers do not perform I/O. Streaming deltas are extracted by the
  shared SSE decoder (``base.streaming.sse_decoder``).
"""

from __future__ import annotations

import json

from pydantic import ValidationError

from ..base.dto.chat import ChatCompletionDTO
from ..base.errors import ApiError, ErrorKind, ResponseDecodeError

INVALID_RESPONSE_FORMAT = "Invalid response format from FastGPT API"

_FRIENDLY_MESSAGES = {
    ErrorKind.NETWORK: "Unable to connect to FastGPT server. Please check your internet connection and Base URL.",
    ErrorKind.AUTHENTICATION: "Authentication failed. Please check your API key and ensure it has the correct permissions.",
    ErrorKind.VALIDATION: "Configuration error. Please verify your Base URL, App ID, and API key are correct.",
    ErrorKind.SERVER: "FastGPT server is temporarily unavailable. Please try again later.",
}
_FALLBACK_MESSAGE = "An unexpected error occurred during connection test."


def parse_completion(body: bytes) -> ChatCompletionDTO:
    """Parse a non-streaming response body.

    Raises:
        ResponseDecodeError: when the body is not JSON or lacks
            ``choices[0].message``.
    """
    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError) as exc:
        raise ResponseDecodeError(INVALID_RESPONSE_FORMAT) from exc
    try:
        return ChatCompletionDTO.model_validate(data)
    except ValidationError as exc:
        raise ResponseDecodeError(INVALID_RESPONSE_FORMAT) from exc


def describe_error(error: ApiError) -> str:
    """Return a user-facing message for ``error``.

    Known kinds map to fixed guidance; ``unknown`` errors keep their own
    message.
    """
    friendly = _FRIENDLY_MESSAGES.get(error.kind)
    if friendly is not None:
        return friendly
    return error.message or _FALLBACK_MESSAGE


__all__ = ["INVALID_RESPONSE_FORMAT", "describe_error", "parse_completion"]
