"""Streaming adapter: runs one exchange and emits lifecycle events.

The adapter owns the exchange state machine::

    IDLE -> STARTED -> STREAMING* -> COMPLETED | ERRORED | ABORTED

Responsibilities:
  * Run the preflight check (configuration and request validation); a
    failure emits a lone ``ErrorEvent`` and nothing else.
  * Emit ``StartEvent`` with a fresh exchange id, then run the retry
    executor around one attempt that opens the transport and forwards each
    decoded delta as a ``ChunkEvent``.
  * Retry only while the current attempt has not emitted a chunk; a failure
    after the first chunk ends the exchange so content is never duplicated.
  * Enforce the optional exchange deadline and external cancellation by
    cancelling the running task, so an awaiting transport read is
    interrupted immediately.
  * Emit exactly one terminal event and log ``stream.exchange.end``.
"""
from __future__ import annotations

import asyncio
import logging
import random
import time
import uuid
from contextlib import aclosing
from dataclasses import replace
from typing import AsyncIterator, Awaitable, Callable, Optional, Protocol

import httpx

from ..cancellation import CancellationToken, CancelledError, DeadlineExceeded
from ..errors import ApiError, ErrorKind, StreamErrorKind, StreamingError
from ..logging import LogContext, get_logger, log_event
from ..resilience.retry import DEFAULT_RETRY_POLICY, RetryPolicy, SleepFunc, execute_with_retry
from .sse_decoder import decode_stream
from .streaming import ChunkEvent, ErrorEvent, StartEvent, StreamingEvent
from .streaming_finalize import finalize_exchange, terminal_event_for
from .streaming_metrics import ExchangeMetrics

Emit = Callable[[StreamingEvent], None]


class ByteStream(Protocol):  # pragma: no cover - structural protocol
    """What a starter returns; ``httpx.Response`` opened with ``stream=True``."""

    def aiter_bytes(self) -> AsyncIterator[bytes]: ...

    async def aclose(self) -> None: ...


Starter = Callable[[CancellationToken], Awaitable[ByteStream]]


def new_exchange_id() -> str:
    """Return a unique exchange identifier (``msg_<hex>``)."""
    return f"msg_{uuid.uuid4().hex}"


def _cancellation_error(token: CancellationToken) -> CancelledError:
    if token.deadline_exceeded:
        return DeadlineExceeded(token.reason or "deadline exceeded")
    return CancelledError(token.reason or "operation cancelled")


class BaseStreamingAdapter:
    """Encapsulates the streaming loop for one exchange.

    Parameters:
        ctx: Logging context (endpoint, conversation id).
        starter: Opens the transport for one attempt and returns the byte
            stream; it receives the attempt's cancellation token.
        preflight: Optional validation hook run before ``StartEvent``; it
            raises a ``validation`` :class:`ApiError` on failure.
        retry_policy: Backoff parameters for the attempt loop.
        timeout: Optional exchange deadline in seconds.
        sleep, rng: Injectable backoff sleep and jitter source.
    """

    def __init__(
        self,
        *,
        ctx: LogContext,
        starter: Starter,
        preflight: Optional[Callable[[], None]] = None,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        timeout: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
        sleep: Optional[SleepFunc] = None,
        rng: Optional[random.Random] = None,
        exchange_id_factory: Callable[[], str] = new_exchange_id,
    ) -> None:
        self.ctx = ctx
        self._starter = starter
        self._preflight = preflight
        self._policy = retry_policy
        self._timeout = timeout
        self._logger = logger or get_logger("fastgpt.stream")
        self._sleep = sleep
        self._rng = rng
        self._exchange_id_factory = exchange_id_factory
        self.exchange_id: Optional[str] = None
        self.metrics = ExchangeMetrics()

    async def run(self, emit: Emit, token: CancellationToken) -> None:
        """Execute the exchange lifecycle, passing every event to ``emit``."""
        if self._preflight is not None:
            try:
                self._preflight()
            except ApiError as exc:
                log_event(self._logger, "stream.exchange.rejected", self.ctx, level=logging.WARNING, error=exc.message)
                emit(
                    ErrorEvent(
                        exchange_id=None,
                        error=StreamingError(StreamErrorKind.CONNECTION, exc.message, False),
                        exception=exc,
                    )
                )
                return

        exchange_id = self._exchange_id_factory()
        self.exchange_id = exchange_id
        ctx = self.ctx.with_exchange(exchange_id)
        exchange_token = token.child()
        loop = asyncio.get_running_loop()
        task = asyncio.current_task()
        t0 = time.perf_counter()

        emit(StartEvent(exchange_id=exchange_id))
        log_event(self._logger, "stream.exchange.start", ctx, timeout_seconds=self._timeout)

        timer = loop.call_later(self._timeout, exchange_token.expire) if self._timeout is not None else None
        remove_callback = exchange_token.add_callback(lambda: loop.call_soon_threadsafe(task.cancel))

        async def attempt() -> None:
            await self._run_attempt(exchange_id, exchange_token.child(), ctx, emit, t0)

        failure: Optional[BaseException] = None
        try:
            await execute_with_retry(
                attempt,
                self._policy,
                token=exchange_token,
                ctx=ctx,
                sleep=self._sleep,
                rng=self._rng,
            )
        except asyncio.CancelledError:
            if not exchange_token.cancelled:
                raise
            task.uncancel()
            failure = _cancellation_error(exchange_token)
        except Exception as exc:
            failure = exc
        finally:
            remove_callback()
            if timer is not None:
                timer.cancel()
            exchange_token.detach()

        self.metrics.total_duration_ms = (time.perf_counter() - t0) * 1000.0
        event = terminal_event_for(exchange_id, self.metrics.emitted, failure)
        emit(finalize_exchange(logger=self._logger, ctx=ctx, metrics=self.metrics, event=event))

    async def _run_attempt(
        self,
        exchange_id: str,
        attempt_token: CancellationToken,
        ctx: LogContext,
        emit: Emit,
        t0: float,
    ) -> None:
        self.metrics.attempts += 1
        try:
            await self._stream_attempt(exchange_id, attempt_token, ctx, emit, t0)
        finally:
            attempt_token.detach()

    async def _stream_attempt(
        self,
        exchange_id: str,
        attempt_token: CancellationToken,
        ctx: LogContext,
        emit: Emit,
        t0: float,
    ) -> None:
        stream = await self._starter(attempt_token)
        emitted_here = 0
        deltas = decode_stream(
            stream.aiter_bytes(),
            release=stream.aclose,
            token=attempt_token,
            metrics=self.metrics,
            ctx=ctx,
        )
        try:
            async with aclosing(deltas):
                async for delta in deltas:
                    if self.metrics.time_to_first_chunk_ms is None:
                        self.metrics.time_to_first_chunk_ms = (time.perf_counter() - t0) * 1000.0
                    emit(ChunkEvent(exchange_id=exchange_id, data=delta, index=self.metrics.emitted))
                    self.metrics.emitted += 1
                    emitted_here += 1
        except ApiError as exc:
            if emitted_here and exc.retryable:
                raise replace(exc, retryable=False) from exc
            raise
        except (httpx.TransportError, OSError) as exc:
            if not emitted_here:
                raise
            raise ApiError(
                kind=ErrorKind.NETWORK,
                message="Network connection lost during streaming",
                retryable=False,
                raw=exc,
            ) from exc


__all__ = ["BaseStreamingAdapter", "ByteStream", "Starter", "new_exchange_id"]
