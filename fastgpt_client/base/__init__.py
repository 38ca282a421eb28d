"""
Client Base Package

Exports the transport-agnostic building blocks used by the FastGPT client:

- Models (DTOs): configuration, messages, exchange requests
- Validation: configuration checks and URL construction
- Errors: taxonomy and classification
- Resilience: retry executor
- Streaming: SSE decoding, exchange adapter, event controller
"""

from .cancellation import CancellationToken, CancelledError, DeadlineExceeded
from .errors import (
    ApiError,
    ErrorKind,
    ResponseDecodeError,
    StreamErrorKind,
    StreamingError,
    classify_exception,
    classify_response,
    classify_streaming_error,
)
from .models import Configuration, ConnectionTestResult, ExchangeRequest, Message, Role
from .resilience import DEFAULT_RETRY_POLICY, RetryPolicy, execute_with_retry
from .streaming import (
    AbortEvent,
    BaseStreamingAdapter,
    ChunkEvent,
    CompleteEvent,
    ErrorEvent,
    ExchangeMetrics,
    SSEDecoder,
    StartEvent,
    StreamController,
    StreamingEvent,
)
from .timeouts import TimeoutConfig, get_timeout_config
from .validation import build_api_url, ensure_valid_config, validate_config

__all__ = [
    # Models
    "Configuration",
    "ConnectionTestResult",
    "ExchangeRequest",
    "Message",
    "Role",
    # Validation
    "build_api_url",
    "ensure_valid_config",
    "validate_config",
    # Errors
    "ApiError",
    "ErrorKind",
    "ResponseDecodeError",
    "StreamErrorKind",
    "StreamingError",
    "classify_exception",
    "classify_response",
    "classify_streaming_error",
    # Cancellation
    "CancellationToken",
    "CancelledError",
    "DeadlineExceeded",
    # Resilience
    "DEFAULT_RETRY_POLICY",
    "RetryPolicy",
    "execute_with_retry",
    # Streaming
    "AbortEvent",
    "BaseStreamingAdapter",
    "ChunkEvent",
    "CompleteEvent",
    "ErrorEvent",
    "ExchangeMetrics",
    "SSEDecoder",
    "StartEvent",
    "StreamController",
    "StreamingEvent",
    # Timeouts
    "TimeoutConfig",
    "get_timeout_config",
]
