"""
Message DTO used by exchange requests.

Defines the ``Message`` dataclass and the ``Role`` literal. History handed
over by a persistence component is converted into this shape before it is
sent; any extra attributes (ids, timestamps) are dropped.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Literal, Mapping

Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class Message:
    """A chat message as sent on the wire."""

    role: Role
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}

    @classmethod
    def coerce(cls, value: "Message | Mapping[str, Any]") -> "Message":
        """Accept a ``Message`` or any mapping with ``role``/``content`` keys."""
        if isinstance(value, Message):
            return value
        return cls(role=value["role"], content=value["content"])


__all__ = ["Message", "Role"]
