"""Cancellation error types.

``CancelledError`` signals an explicit, caller-requested cancellation.
``DeadlineExceeded`` is the variant raised when the exchange timer fired;
it subclasses ``CancelledError`` so both unwind the same abort path while
remaining distinguishable by type.
"""

from __future__ import annotations


class CancelledError(RuntimeError):
    """Raised when an operation observes a cancellation request.

    Distinct from ``asyncio.CancelledError``: this one is an ordinary
    exception carrying the reason supplied to ``CancellationToken.cancel``.
    The retry executor never retries it.
    """

    def __init__(self, reason: str = "operation cancelled") -> None:
        super().__init__(reason)
        self.reason = reason


class DeadlineExceeded(CancelledError):
    """Raised when the exchange deadline elapsed before completion."""


__all__ = ["CancelledError", "DeadlineExceeded"]
