"""
Normalized error kinds (taxonomy).

Two closed enumerations are defined here:

- ``ErrorKind`` classifies request-level failures (configuration, HTTP
  status, transport) and drives retry decisions.
- ``StreamErrorKind`` classifies the terminal failure of a streamed
  exchange as surfaced to the caller in an ``ErrorEvent``.

Values are lowercase and are considered a stable public contract for
logging and callers.
"""
from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Request-level failure categories."""

    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    SERVER = "server"
    NETWORK = "network"
    UNKNOWN = "unknown"


class StreamErrorKind(str, Enum):
    """Terminal failure categories of a streamed exchange."""

    CONNECTION = "connection"
    PARSING = "parsing"
    TIMEOUT = "timeout"
    ABORT = "abort"


__all__ = ["ErrorKind", "StreamErrorKind"]
