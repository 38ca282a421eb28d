"""Streaming package.

Exposes event primitives, the SSE decoder, the exchange adapter, metrics and
the controller under a single namespace.
"""

from .streaming import (
    AbortEvent,
    ChunkEvent,
    CompleteEvent,
    ErrorEvent,
    StartEvent,
    StreamingEvent,
    TERMINAL_EVENT_TYPES,
    accumulate_events,
    is_terminal,
)
from .streaming_metrics import ExchangeMetrics
from .sse_decoder import SSEDecoder, decode_stream, extract_delta_content
from .streaming_finalize import finalize_exchange, terminal_event_for
from .stream_controller import StreamController
from .streaming_adapter import BaseStreamingAdapter, ByteStream, Starter, new_exchange_id

__all__ = [
    "AbortEvent",
    "ChunkEvent",
    "CompleteEvent",
    "ErrorEvent",
    "StartEvent",
    "StreamingEvent",
    "TERMINAL_EVENT_TYPES",
    "accumulate_events",
    "is_terminal",
    "ExchangeMetrics",
    "SSEDecoder",
    "decode_stream",
    "extract_delta_content",
    "finalize_exchange",
    "terminal_event_for",
    "StreamController",
    "BaseStreamingAdapter",
    "ByteStream",
    "Starter",
    "new_exchange_id",
]
