"""
Connection configuration DTO.

``Configuration`` holds the endpoint, app id and credential for one client
instance. It is frozen: a client never mutates it, and a new client is built
for a different configuration. The credential is excluded from ``repr``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional

from ...config.env import resolve_connection_settings


@dataclass(frozen=True)
class Configuration:
    """Connection settings for the chat-completion service.

    Attributes:
        endpoint: Base URL of the deployment (``https://host`` or
            ``https://host/api``).
        app_id: Application identifier issued by the service.
        credential: API key sent as a bearer token.
    """

    endpoint: str
    app_id: str
    credential: str = field(repr=False)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Configuration":
        """Build a configuration from ``FASTGPT_*`` environment variables.

        Missing values become empty strings; validation happens later.
        """
        return cls(**resolve_connection_settings(environ))


__all__ = ["Configuration"]
