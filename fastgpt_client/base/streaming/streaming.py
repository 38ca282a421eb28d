"""Streaming event primitives.

One streamed exchange produces ``StartEvent``, zero or more ``ChunkEvent``
values with a running 0-based index, and exactly one terminal event
(``CompleteEvent``, ``ErrorEvent`` or ``AbortEvent``). Nothing follows the
terminal event. A configuration failure yields a lone ``ErrorEvent``
without ``exchange_id``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Iterable, Optional, Union

from ..errors import StreamingError


@dataclass(frozen=True)
class StartEvent:
    type: ClassVar[str] = "start"

    exchange_id: str


@dataclass(frozen=True)
class ChunkEvent:
    type: ClassVar[str] = "chunk"

    exchange_id: str
    data: str
    index: int


@dataclass(frozen=True)
class CompleteEvent:
    type: ClassVar[str] = "complete"

    exchange_id: str
    total_chunks: int


@dataclass(frozen=True)
class ErrorEvent:
    """Terminal failure.

    ``exception`` keeps the original error for callers that prefer to
    re-raise it; it is excluded from ``repr`` and equality.
    """

    type: ClassVar[str] = "error"

    exchange_id: Optional[str]
    error: StreamingError
    exception: Optional[BaseException] = field(default=None, repr=False, compare=False)


@dataclass(frozen=True)
class AbortEvent:
    type: ClassVar[str] = "abort"

    exchange_id: str
    reason: Optional[str] = None


StreamingEvent = Union[StartEvent, ChunkEvent, CompleteEvent, ErrorEvent, AbortEvent]

TERMINAL_EVENT_TYPES = (CompleteEvent, ErrorEvent, AbortEvent)


def is_terminal(event: StreamingEvent) -> bool:
    """Whether ``event`` ends the exchange."""
    return isinstance(event, TERMINAL_EVENT_TYPES)


def accumulate_events(events: Iterable[StreamingEvent]) -> str:
    """Concatenate chunk data in order of arrival."""
    return "".join(e.data for e in events if isinstance(e, ChunkEvent))


__all__ = [
    "StartEvent",
    "ChunkEvent",
    "CompleteEvent",
    "ErrorEvent",
    "AbortEvent",
    "StreamingEvent",
    "TERMINAL_EVENT_TYPES",
    "is_terminal",
    "accumulate_events",
]
