"""
Structured API error exception types.

``ApiError`` wraps HTTP and transport failures with a normalized
:class:`ErrorKind` so the retry executor and the event emitter can act on a
closed set of variants instead of inspecting message text.
``ResponseDecodeError`` marks payloads whose structure or encoding cannot be
understood.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .error_kind import ErrorKind


@dataclass(eq=False)
class ApiError(Exception):
    """Represents a classified failure of a call to the chat service.

    Attributes:
        kind: Normalized :class:`ErrorKind` classification.
        message: Human-readable message suitable for logging and display.
        code: HTTP status (or upstream error code) when one is known.
        retryable: Whether the retry executor may attempt the call again.
        retry_after_seconds: Server supplied ``Retry-After`` hint.
        raw: Optional original exception for diagnostics.
    """

    kind: ErrorKind
    message: str
    code: Optional[int] = None
    retryable: bool = False
    retry_after_seconds: Optional[float] = None
    raw: Optional[BaseException] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        prefix = f"{self.kind.value}"
        if self.code is not None:
            prefix += f"[{self.code}]"
        return f"{prefix}: {self.message}"

    @property
    def is_rate_limited(self) -> bool:
        """True for HTTP 429 responses."""
        return self.code == 429


class ResponseDecodeError(ValueError):
    """Raised when a response body or stream cannot be decoded.

    Covers invalid UTF-8 in a stream and non-streaming payloads that lack the
    expected ``choices[0].message`` structure. Individual malformed SSE frames
    never raise this error; they are skipped by the decoder.
    """


__all__ = ["ApiError", "ResponseDecodeError"]
