"""Structured logging context object.

Defines :class:`LogContext`, a dataclass carrying the fields common to every
event of one exchange (endpoint, exchange id, conversation id) plus free-form
extras. ``to_dict`` merges the extras and prunes ``None`` values.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, Optional


@dataclass
class LogContext:
    """Structured context for client logging events."""

    endpoint: Optional[str] = None
    exchange_id: Optional[str] = None
    conversation_id: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        extra = data.pop("extra", {}) or {}
        data.update({k: v for k, v in extra.items() if v is not None})
        return {k: v for k, v in data.items() if v is not None}

    def with_exchange(self, exchange_id: str) -> "LogContext":
        """Return a copy bound to ``exchange_id``."""
        return replace(self, exchange_id=exchange_id, extra=dict(self.extra))


__all__ = ["LogContext"]
