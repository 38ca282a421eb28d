"""Unified error taxonomy public surface.

This module re-exports the one-class-per-file implementations under
``fastgpt_client.base.errors_parts`` to keep a stable import path.
"""

from .errors_parts.error_kind import ErrorKind, StreamErrorKind
from .errors_parts.api_error import ApiError, ResponseDecodeError
from .errors_parts.classification import (
    StreamingError,
    classify_exception,
    classify_http_response,
    classify_response,
    classify_stream_error_frame,
    classify_streaming_error,
    parse_retry_after,
)

__all__ = [
    "ErrorKind",
    "StreamErrorKind",
    "ApiError",
    "ResponseDecodeError",
    "StreamingError",
    "classify_exception",
    "classify_http_response",
    "classify_response",
    "classify_stream_error_frame",
    "classify_streaming_error",
    "parse_retry_after",
]
