"""Errors parts package public surface.

Re-exports individual error taxonomy components for optional direct imports.
Prefer importing from `fastgpt_client.base.errors` for the stable surface.
"""

from .error_kind import ErrorKind, StreamErrorKind
from .api_error import ApiError, ResponseDecodeError
from .classification import (
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
