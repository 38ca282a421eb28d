"""Client data models (facade).

Re-exports the immutable DTOs shared by the client, the streaming layer and
the CLI. Wire-level pydantic models live in ``base.dto``.
"""
from __future__ import annotations

from .models_parts.configuration import Configuration
from .models_parts.connection_test import ConnectionTestResult
from .models_parts.exchange_request import ExchangeRequest
from .models_parts.message import Message, Role

__all__ = [
    "Configuration",
    "ConnectionTestResult",
    "ExchangeRequest",
    "Message",
    "Role",
]
