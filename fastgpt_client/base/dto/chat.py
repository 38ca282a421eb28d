"""
Pydantic DTOs for the chat-completion wire format.

Purpose
-------
Validate outbound request payloads before any network call and parse the
non-streaming response into a typed object. Streaming frames are NOT parsed
through these models: the SSE decoder reads the few fields it needs from the
raw JSON so that unrelated frames (status/progress events) pass silently.

External dependencies: Pydantic only (no network calls).

Failure semantics: validation raises ``pydantic.ValidationError``; callers
convert it to a ``validation`` :class:`ApiError` (request side) or to a
:class:`ResponseDecodeError` (response side).
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


Role = Literal["system", "user", "assistant"]


class MessageDTO(BaseModel):
    """One chat message.

    ``content`` must be a string; empty content is allowed only for
    non-user roles (history may contain empty assistant turns).
    """

    model_config = ConfigDict(from_attributes=True)

    role: Role
    content: str

    @field_validator("content")
    @classmethod
    def _content_is_text(cls, value: str, info) -> str:
        if info.data.get("role") == "user" and not value.strip():
            raise ValueError("user message content must be non-empty")
        return value


class ChatCompletionRequestDTO(BaseModel):
    """Request body for ``POST /api/v1/chat/completions``."""

    model_config = ConfigDict(populate_by_name=True)

    chat_id: Optional[str] = Field(default=None, alias="chatId")
    stream: bool
    detail: bool = False
    messages: List[MessageDTO] = Field(..., min_length=1)
    variables: Optional[Dict[str, Any]] = None

    def to_wire(self) -> Dict[str, Any]:
        """Return the JSON body with camelCase keys and unset fields omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)


class UsageDTO(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChoiceMessageDTO(BaseModel):
    role: str = "assistant"
    content: str = ""


class ChoiceDTO(BaseModel):
    message: ChoiceMessageDTO
    finish_reason: Optional[str] = None
    index: int = 0


class ChatCompletionDTO(BaseModel):
    """Non-streaming response body."""

    id: str = ""
    model: str = ""
    usage: Optional[UsageDTO] = None
    choices: List[ChoiceDTO] = Field(..., min_length=1)

    @property
    def content(self) -> str:
        """Text of the first choice."""
        return self.choices[0].message.content


__all__ = [
    "Role",
    "MessageDTO",
    "ChatCompletionRequestDTO",
    "UsageDTO",
    "ChoiceMessageDTO",
    "ChoiceDTO",
    "ChatCompletionDTO",
]
