"""
Error classification helpers.

Maps HTTP responses and transport exceptions to :class:`ApiError` values
(request level, drives retries) and terminal exceptions of a streamed
exchange to :class:`StreamingError` values (event level). Classification is
by status code and exception type only; message text is never inspected.
"""
from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

import httpx

from ..cancellation_parts.cancelled_error import CancelledError, DeadlineExceeded
from .api_error import ApiError, ResponseDecodeError
from .error_kind import ErrorKind, StreamErrorKind


# status -> (kind, retryable, canned message); ``None`` message means the
# upstream body message is preferred when present.
_HTTP_STATUS_MAP: Dict[int, Tuple[ErrorKind, bool, Optional[str]]] = {
    400: (ErrorKind.VALIDATION, False, None),
    401: (ErrorKind.AUTHENTICATION, False, "Authentication failed: Invalid API key"),
    403: (ErrorKind.AUTHENTICATION, False, "Access forbidden: Check your API key permissions"),
    404: (ErrorKind.VALIDATION, False, "API endpoint not found: Check your Base URL"),
    408: (ErrorKind.SERVER, True, "Request timeout: The server took too long to respond"),
    429: (ErrorKind.SERVER, True, "Rate limit exceeded: Too many requests"),
    500: (ErrorKind.SERVER, True, "Server error: FastGPT service is temporarily unavailable"),
    502: (ErrorKind.SERVER, True, "Server error: FastGPT service is temporarily unavailable"),
    503: (ErrorKind.SERVER, True, "Server error: FastGPT service is temporarily unavailable"),
    504: (ErrorKind.SERVER, True, "Server error: FastGPT service is temporarily unavailable"),
}

_BAD_REQUEST_FALLBACK = "Bad request: Invalid configuration"

# Upstream error frames embedded in a stream carry a ``statusText`` slug.
_STATUS_TEXT_KINDS: Dict[str, Tuple[ErrorKind, bool]] = {
    "authenticationFailed": (ErrorKind.AUTHENTICATION, False),
    "rateLimitExceeded": (ErrorKind.SERVER, True),
}


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Parse a ``Retry-After`` header expressed in seconds.

    Returns ``None`` for missing, negative or non-numeric values (HTTP-date
    forms are not honored).
    """
    if not value:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


def _body_message(body: Optional[bytes]) -> Tuple[bool, Optional[str]]:
    """Return ``(parsed, message)`` for an error response body."""
    if not body:
        return False, None
    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return False, None
    if isinstance(data, dict):
        msg = data.get("message")
        return True, str(msg) if msg else None
    return True, None


def classify_response(
    status: int,
    reason: str = "",
    headers: Optional[Mapping[str, str]] = None,
    body: Optional[bytes] = None,
) -> ApiError:
    """Classify a non-success HTTP response into an :class:`ApiError`.

    Kind and retryability depend on ``status`` alone. When the body cannot be
    parsed the message falls back to ``"HTTP {status}: {reason}"``.
    """
    headers = headers or {}
    parsed, upstream_msg = _body_message(body)
    generic = f"HTTP {status}: {reason}" if reason else f"HTTP {status}"

    if status in _HTTP_STATUS_MAP:
        kind, retryable, canned = _HTTP_STATUS_MAP[status]
        if not parsed:
            message = generic
        elif status == 400:
            message = upstream_msg or _BAD_REQUEST_FALLBACK
        else:
            message = canned or generic
    else:
        kind = ErrorKind.UNKNOWN
        retryable = status >= 500
        message = (upstream_msg if parsed else None) or generic

    retry_after = None
    if retryable and status != 408:
        retry_after = parse_retry_after(headers.get("Retry-After"))
    return ApiError(
        kind=kind,
        message=message,
        code=status,
        retryable=retryable,
        retry_after_seconds=retry_after,
    )


def classify_http_response(response: httpx.Response, body: Optional[bytes] = None) -> ApiError:
    """Convenience wrapper around :func:`classify_response` for ``httpx``."""
    return classify_response(
        response.status_code,
        response.reason_phrase or "",
        response.headers,
        body if body is not None else _safe_content(response),
    )


def _safe_content(response: httpx.Response) -> Optional[bytes]:
    try:
        return response.content
    except httpx.ResponseNotRead:
        return None


def classify_stream_error_frame(data: Mapping[str, Any]) -> Optional[ApiError]:
    """Return an :class:`ApiError` when an SSE payload is an upstream error.

    The service reports some failures (exhausted balance, bad key) inside the
    stream as ``{"code", "statusText", "message"}`` objects.
    """
    if not (data.get("code") and data.get("statusText") and data.get("message")):
        return None
    status_text = str(data["statusText"])
    kind, retryable = _STATUS_TEXT_KINDS.get(status_text, (ErrorKind.UNKNOWN, False))
    code = data.get("code")
    message = f"FastGPT API error {code} ({status_text}): {data['message']}"
    return ApiError(
        kind=kind,
        message=message,
        code=code if isinstance(code, int) else None,
        retryable=retryable,
    )


def classify_exception(exc: BaseException) -> ApiError:
    """Classify an exception into an :class:`ApiError`.

    Precedence:
        1. ``ApiError`` passthrough.
        2. ``httpx.HTTPStatusError`` via the status map.
        3. Transport failures (``httpx.TransportError``, ``OSError``,
           timeouts) as retryable ``network`` errors.
        4. Decode failures and everything else as non-retryable ``unknown``.
    """
    if isinstance(exc, ApiError):
        return exc
    if isinstance(exc, httpx.HTTPStatusError):
        err = classify_http_response(exc.response)
        err.raw = exc
        return err
    if isinstance(exc, (httpx.TransportError, OSError, asyncio.TimeoutError)):
        return ApiError(
            kind=ErrorKind.NETWORK,
            message=f"Network error: {str(exc) or exc.__class__.__name__}",
            retryable=True,
            raw=exc,
        )
    return ApiError(kind=ErrorKind.UNKNOWN, message=str(exc) or exc.__class__.__name__, raw=exc)


@dataclass(frozen=True)
class StreamingError:
    """Terminal failure description carried by an ``ErrorEvent``."""

    kind: StreamErrorKind
    message: str
    recoverable: bool


def classify_streaming_error(exc: BaseException) -> StreamingError:
    """Map the exception that ended an exchange to a :class:`StreamingError`.

    Precedence: deadline → timeout; explicit cancellation → abort;
    transport failure → connection; decode/structure failure → parsing;
    authentication failure → connection (not recoverable); anything else →
    connection (recoverable).
    """
    if isinstance(exc, DeadlineExceeded):
        return StreamingError(StreamErrorKind.TIMEOUT, "Request timed out while streaming", True)
    if isinstance(exc, CancelledError):
        return StreamingError(StreamErrorKind.ABORT, "Request was cancelled", True)
    if isinstance(exc, httpx.TimeoutException):
        return StreamingError(StreamErrorKind.TIMEOUT, "Request timed out while streaming", True)
    if isinstance(exc, (httpx.TransportError, OSError)):
        return StreamingError(StreamErrorKind.CONNECTION, "Network connection lost during streaming", True)
    if isinstance(exc, ResponseDecodeError):
        return StreamingError(StreamErrorKind.PARSING, "Failed to parse streaming response", False)
    if isinstance(exc, ApiError):
        if exc.kind is ErrorKind.NETWORK and exc.raw is not None and exc.raw is not exc:
            return classify_streaming_error(exc.raw)
        if exc.kind is ErrorKind.NETWORK:
            return StreamingError(StreamErrorKind.CONNECTION, "Network connection lost during streaming", True)
        if exc.kind is ErrorKind.AUTHENTICATION:
            return StreamingError(StreamErrorKind.CONNECTION, exc.message, False)
        return StreamingError(StreamErrorKind.CONNECTION, exc.message, True)
    return StreamingError(StreamErrorKind.CONNECTION, str(exc) or exc.__class__.__name__, True)


__all__ = [
    "classify_exception",
    "classify_response",
    "classify_http_response",
    "classify_stream_error_frame",
    "classify_streaming_error",
    "parse_retry_after",
    "StreamingError",
    "_HTTP_STATUS_MAP",
]
