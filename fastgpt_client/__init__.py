"""fastgpt_client package

Async client for FastGPT and other OpenAI-compatible chat-completion
services.

Public API (re-exported):
    - Version: ``__version__``
    - Client: :class:`FastGPTClient`
    - Models: :class:`Configuration`, :class:`Message`,
      :class:`ExchangeRequest`, :class:`ConnectionTestResult`
    - Errors: :class:`ApiError`, :class:`ErrorKind`,
      :class:`ResponseDecodeError`, :class:`StreamingError`,
      :class:`StreamErrorKind`
    - Streaming events and :class:`StreamController`
    - Cancellation: :class:`CancellationToken`, :class:`CancelledError`,
      :class:`DeadlineExceeded`
    - Retry: :class:`RetryPolicy`, :func:`execute_with_retry`
"""

from .base.cancellation import CancellationToken, CancelledError, DeadlineExceeded
from .base.dto.chat import ChatCompletionDTO as ChatCompletion
from .base.errors import ApiError, ErrorKind, ResponseDecodeError, StreamErrorKind, StreamingError
from .base.models import Configuration, ConnectionTestResult, ExchangeRequest, Message
from .base.resilience import RetryPolicy, execute_with_retry
from .base.streaming import (
    AbortEvent,
    ChunkEvent,
    CompleteEvent,
    ErrorEvent,
    StartEvent,
    StreamController,
    StreamingEvent,
)
from .base.timeouts import TimeoutConfig
from .base.validation import build_api_url, validate_config
from .fastgpt import FastGPTClient

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "FastGPTClient",
    "ChatCompletion",
    "Configuration",
    "ConnectionTestResult",
    "ExchangeRequest",
    "Message",
    "ApiError",
    "ErrorKind",
    "ResponseDecodeError",
    "StreamErrorKind",
    "StreamingError",
    "AbortEvent",
    "ChunkEvent",
    "CompleteEvent",
    "ErrorEvent",
    "StartEvent",
    "StreamController",
    "StreamingEvent",
    "CancellationToken",
    "CancelledError",
    "DeadlineExceeded",
    "RetryPolicy",
    "execute_with_retry",
    "TimeoutConfig",
    "build_api_url",
    "validate_config",
]
