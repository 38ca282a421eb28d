"""Cooperative cancellation token implementation.

Exposes the ``CancellationToken`` class used by the streaming layer to end an
exchange early. A token can be polled (``raise_if_cancelled``) between stream
reads, and it can push the request to registered callbacks so an awaiting
transport call is interrupted immediately.
"""

from __future__ import annotations

from threading import Lock
from typing import Callable, List

from .state import State
from .cancelled_error import CancelledError, DeadlineExceeded

Callback = Callable[[], None]


class CancellationToken:
    """A cooperative cancellation token with cascading semantics.

    Thread-safe for ``cancel`` + ``raise_if_cancelled`` usage. Child tokens
    inherit cancellation (and the deadline flag) when the parent is cancelled.
    Callbacks registered with ``add_callback`` run once, on the cancelling
    thread, after the state change is visible.
    """

    def __init__(self, *, parent: "CancellationToken | None" = None) -> None:
        self._state = State()
        self._lock = Lock()
        self._children: List[CancellationToken] = []
        self._callbacks: List[Callback] = []
        self._parent: "CancellationToken | None" = None
        if parent is not None:
            parent.link_child(self)

    @property
    def cancelled(self) -> bool:  # noqa: D401 - short form
        """Whether cancellation has been requested."""
        return self._state.cancelled

    @property
    def reason(self) -> str | None:  # noqa: D401 - short form
        """Reason string supplied at cancel time (if any)."""
        return self._state.reason

    @property
    def deadline_exceeded(self) -> bool:  # noqa: D401 - short form
        """Whether the cancellation was triggered by an elapsed deadline."""
        return self._state.deadline_exceeded

    def cancel(self, reason: str | None = None) -> None:
        """Request cancellation, cascade to children and fire callbacks."""
        self._trigger(reason, deadline=False)

    def expire(self, reason: str | None = None) -> None:
        """Mark the deadline as elapsed; behaves like ``cancel`` otherwise."""
        self._trigger(reason or "deadline exceeded", deadline=True)

    def _trigger(self, reason: str | None, *, deadline: bool) -> None:
        with self._lock:
            if self._state.cancelled:
                return
            self._state.cancelled = True
            self._state.reason = reason
            self._state.deadline_exceeded = deadline
            children = list(self._children)
            callbacks = list(self._callbacks)
            self._callbacks.clear()
        for child in children:
            child._trigger(reason, deadline=deadline)
        for callback in callbacks:
            callback()

    def link_child(self, token: "CancellationToken") -> "CancellationToken":
        """Link a child token so parent cancellation cascades (returns child)."""
        with self._lock:
            self._children.append(token)
            token._parent = self
            should_cancel = self._state.cancelled
            reason = self._state.reason
            deadline = self._state.deadline_exceeded
        if should_cancel:
            token._trigger(reason, deadline=deadline)
        return token

    def unlink_child(self, token: "CancellationToken") -> None:
        """Stop cascading to ``token``; unknown tokens are ignored."""
        with self._lock:
            if token in self._children:
                self._children.remove(token)
            if token._parent is self:
                token._parent = None

    def detach(self) -> None:
        """Unlink this token from its parent (no-op for root tokens).

        Called when the work a child token guarded has finished, so that a
        long-lived parent does not accumulate finished children.
        """
        parent = self._parent
        if parent is not None:
            parent.unlink_child(self)

    @property
    def child_count(self) -> int:  # noqa: D401 - short form
        """Number of linked child tokens."""
        with self._lock:
            return len(self._children)

    def child(self) -> "CancellationToken":
        """Create and link a child token (shortcut)."""
        return CancellationToken(parent=self)

    def add_callback(self, callback: Callback) -> Callable[[], None]:
        """Register ``callback`` to run on cancellation.

        If the token is already cancelled the callback runs immediately.
        Returns a function that unregisters the callback; calling it after
        the callback fired is harmless.
        """
        with self._lock:
            already = self._state.cancelled
            if not already:
                self._callbacks.append(callback)
        if already:
            callback()

        def _remove() -> None:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

        return _remove

    def raise_if_cancelled(self) -> None:
        """Raise ``DeadlineExceeded`` or ``CancelledError`` if cancelled."""
        if not self._state.cancelled:
            return
        if self._state.deadline_exceeded:
            raise DeadlineExceeded(self._state.reason or "deadline exceeded")
        raise CancelledError(self._state.reason or "operation cancelled")

    def __repr__(self) -> str:  # pragma: no cover - introspection aid
        return (
            f"CancellationToken(cancelled={self._state.cancelled}, "
            f"deadline_exceeded={self._state.deadline_exceeded}, "
            f"reason={self._state.reason!r}, children={len(self._children)})"
        )


__all__ = ["CancellationToken"]
