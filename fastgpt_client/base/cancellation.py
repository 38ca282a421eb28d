"""Cooperative cancellation primitives (public API facade).

Purpose
-------
Expose stable cancellation constructs via the canonical
``fastgpt_client.base.cancellation`` import path while the concrete
implementations live under ``cancellation_parts``.

Notes
-----
- ``CancellationToken`` signals cancellation across the streaming layer and
  can interrupt an in-flight request through registered callbacks.
- ``CancelledError`` is raised by operations that observe a cancellation
  request; ``DeadlineExceeded`` when the request came from a timer.
"""

from .cancellation_parts.cancelled_error import CancelledError, DeadlineExceeded
from .cancellation_parts.cancellation_token import CancellationToken

__all__ = ["CancellationToken", "CancelledError", "DeadlineExceeded"]
