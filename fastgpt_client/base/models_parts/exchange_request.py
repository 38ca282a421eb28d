"""
Exchange request DTO.

An ``ExchangeRequest`` is one call to the chat-completion endpoint: the
message history, an optional conversation id forwarded as ``chatId``, and
optional template variables. ``to_payload`` validates the request through
the pydantic wire model and returns the JSON body.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from ..dto.chat import ChatCompletionRequestDTO
from .message import Message


@dataclass(frozen=True)
class ExchangeRequest:
    """One request to the chat-completion endpoint.

    Attributes:
        messages: Ordered history; the last entry is normally the user turn.
        conversation_id: Server-side conversation to append to (``chatId``).
        variables: Template variables forwarded verbatim.
        streaming: Whether the response should be streamed as SSE.
    """

    messages: Tuple[Message, ...]
    conversation_id: Optional[str] = None
    variables: Optional[Dict[str, Any]] = field(default=None)
    streaming: bool = True

    @classmethod
    def build(
        cls,
        messages: Sequence["Message | Mapping[str, Any]"],
        *,
        conversation_id: Optional[str] = None,
        variables: Optional[Mapping[str, Any]] = None,
        streaming: bool = True,
    ) -> "ExchangeRequest":
        """Create a request from ``Message`` objects or plain mappings."""
        return cls(
            messages=tuple(Message.coerce(m) for m in messages),
            conversation_id=conversation_id,
            variables=dict(variables) if variables is not None else None,
            streaming=streaming,
        )

    @classmethod
    def from_text(cls, text: str, **kwargs: Any) -> "ExchangeRequest":
        """Single user message shortcut."""
        return cls.build([Message(role="user", content=text)], **kwargs)

    def with_streaming(self, streaming: bool) -> "ExchangeRequest":
        return self if self.streaming is streaming else replace(self, streaming=streaming)

    def to_dto(self) -> ChatCompletionRequestDTO:
        """Validate into the wire model (raises ``pydantic.ValidationError``)."""
        return ChatCompletionRequestDTO.model_validate(
            {
                "chatId": self.conversation_id,
                "stream": self.streaming,
                "detail": False,
                "messages": [m.to_dict() for m in self.messages],
                "variables": self.variables,
            }
        )

    def to_payload(self) -> Dict[str, Any]:
        """Return the validated JSON body."""
        return self.to_dto().to_wire()


__all__ = ["ExchangeRequest"]
