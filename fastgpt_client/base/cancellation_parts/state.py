"""Internal state holder for cancellation tokens.

Dataclass used by ``CancellationToken`` to track cancellation status, the
optional reason and whether the cancellation came from an elapsed deadline.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class State:
    """Internal state for cooperative cancellation tokens."""

    cancelled: bool = False
    reason: Optional[str] = None
    deadline_exceeded: bool = False


__all__ = ["State"]
