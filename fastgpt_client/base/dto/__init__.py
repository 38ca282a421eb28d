"""Pydantic DTOs for request validation and response parsing."""

from .chat import (
    ChatCompletionDTO,
    ChatCompletionRequestDTO,
    ChoiceDTO,
    ChoiceMessageDTO,
    MessageDTO,
    UsageDTO,
)

__all__ = [
    "ChatCompletionDTO",
    "ChatCompletionRequestDTO",
    "ChoiceDTO",
    "ChoiceMessageDTO",
    "MessageDTO",
    "UsageDTO",
]
