"""Finalize helper for streamed exchanges.

Located within the streaming package to localize terminal event creation and
the consolidated ``stream.exchange.end`` log record.
"""
from __future__ import annotations

import logging
from typing import Optional

from ..cancellation import CancelledError
from ..errors import StreamErrorKind, StreamingError, classify_streaming_error
from ..logging import LogContext, normalized_log_event
from .streaming import AbortEvent, CompleteEvent, ErrorEvent, StreamingEvent
from .streaming_metrics import ExchangeMetrics


def terminal_event_for(exchange_id: str, total_chunks: int, exc: Optional[BaseException]) -> StreamingEvent:
    """Map the outcome of an exchange to its terminal event.

    ``exc is None`` means natural end. Explicit cancellation becomes an
    ``AbortEvent``; every other failure (deadline included) an ``ErrorEvent``.
    """
    if exc is None:
        return CompleteEvent(exchange_id=exchange_id, total_chunks=total_chunks)
    error: StreamingError = classify_streaming_error(exc)
    if isinstance(exc, CancelledError) and error.kind is StreamErrorKind.ABORT:
        return AbortEvent(exchange_id=exchange_id, reason=exc.reason)
    return ErrorEvent(exchange_id=exchange_id, error=error, exception=exc)


def finalize_exchange(
    *,
    logger: logging.Logger,
    ctx: LogContext,
    metrics: ExchangeMetrics,
    event: StreamingEvent,
) -> StreamingEvent:
    """Emit the consolidated end-of-exchange log record and return ``event``."""
    error_code: Optional[str] = None
    level = logging.INFO
    if isinstance(event, ErrorEvent):
        error_code = event.error.kind.value
        level = logging.WARNING
    elif isinstance(event, AbortEvent):
        error_code = "abort"
    normalized_log_event(
        logger,
        "stream.exchange.end",
        ctx,
        phase="finalize",
        attempt=metrics.attempts,
        error_code=error_code,
        emitted=metrics.emitted,
        level=level,
        outcome=event.type,
        parse_failures=metrics.parse_failures,
        time_to_first_chunk_ms=metrics.time_to_first_chunk_ms,
        total_duration_ms=metrics.total_duration_ms,
        error=event.error.message if isinstance(event, ErrorEvent) else None,
    )
    return event


__all__ = ["finalize_exchange", "terminal_event_for"]
