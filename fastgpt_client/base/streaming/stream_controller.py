"""StreamController abstraction separated from the adapter module.

Provides a cancellable async iterator facade around
:class:`BaseStreamingAdapter`. The adapter runs in a producer task and pushes
events into an unbounded queue; the controller hands them to the caller in
order. Splitting this out keeps the adapter focused on the exchange loop
and allows controller-specific tests.
"""
from __future__ import annotations

import asyncio
from typing import List, Optional

from ..cancellation import CancellationToken
from .streaming import AbortEvent, ChunkEvent, CompleteEvent, StreamingEvent, accumulate_events, is_terminal

_END = object()


class StreamController:
    """High-level cancellable iterator wrapping ``BaseStreamingAdapter``.

    Responsibilities:
      * Iterate over streaming events (``async for``).
      * Expose ``cancel(reason)`` for cooperative cancellation; chunks still
        queued when cancellation is requested are dropped, and a completion
        the caller has not seen yet is reported as an ``AbortEvent``.
      * Track the terminal event for post-hoc inspection.

    The producer task starts on first iteration. Leaving an ``async with``
    block (or calling ``aclose``) cancels an unfinished exchange and waits
    for the producer to settle.
    """

    def __init__(
        self,
        adapter,  # untyped to avoid a circular import of BaseStreamingAdapter
        token: CancellationToken | None = None,
    ) -> None:
        self._adapter = adapter
        self._token = token or CancellationToken()
        self._queue: asyncio.Queue = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None
        self._exhausted = False
        self._finished = False
        self._terminal_event: StreamingEvent | None = None

    def _ensure_started(self) -> asyncio.Task:
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._produce())
        return self._task

    async def _produce(self) -> None:
        try:
            await self._adapter.run(self._queue.put_nowait, self._token)
        finally:
            self._token.detach()
            self._queue.put_nowait(_END)

    def __aiter__(self) -> "StreamController":
        return self

    async def __anext__(self) -> StreamingEvent:
        if self._exhausted:
            raise StopAsyncIteration
        task = self._ensure_started()
        while True:
            item = await self._queue.get()
            if item is _END:
                self._exhausted = True
                if not self._finished and not task.cancelled():
                    # Producer failed without a terminal event; surface its error.
                    await task
                raise StopAsyncIteration
            if self._token.cancelled:
                if isinstance(item, ChunkEvent):
                    continue
                if isinstance(item, CompleteEvent):
                    # Chunks were dropped; the exchange did not complete for the caller.
                    item = AbortEvent(exchange_id=item.exchange_id, reason=self._token.reason or "operation cancelled")
            if is_terminal(item):
                self._finished = True
                self._terminal_event = item
            return item

    async def __aenter__(self) -> "StreamController":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # API -----------------------------------------------------------------
    def cancel(self, reason: str | None = None) -> None:
        """Request cancellation of the exchange.

        Safe to invoke multiple times or after completion; the exchange ends
        with a single ``AbortEvent`` unless it already reached a terminal
        event.
        """
        self._token.cancel(reason)

    async def aclose(self) -> None:
        """Cancel an unfinished exchange and wait for the producer task."""
        self._exhausted = True
        task = self._task
        if task is None or task.done():
            return
        self._token.cancel("stream closed")
        await asyncio.wait({task})
        if not task.cancelled() and task.exception() is not None:
            raise task.exception()

    async def collect(self) -> List[StreamingEvent]:
        """Drain the remaining events into a list."""
        return [event async for event in self]

    async def collect_text(self) -> str:
        """Drain the remaining events and return the concatenated chunks."""
        return accumulate_events(await self.collect())

    @property
    def token(self) -> CancellationToken:
        return self._token

    @property
    def finished(self) -> bool:  # noqa: D401 - short property
        """Whether the stream has emitted its terminal event."""
        return self._finished

    @property
    def terminal_event(self) -> StreamingEvent | None:  # noqa: D401 - short property
        """Return the captured terminal event if iteration has completed."""
        return self._terminal_event

    @property
    def exchange_id(self) -> str | None:
        return self._adapter.exchange_id

    @property
    def metrics(self):
        """Exchange metrics collected by the adapter."""
        return self._adapter.metrics


__all__ = ["StreamController"]
