"""
Configuration and request validation.

Pure helpers run before every public client operation:

- ``validate_config`` checks endpoint, app id and credential in that order
  and returns the first failure as a ``validation`` :class:`ApiError`.
- ``build_api_url`` turns an endpoint into the chat-completions URL,
  inserting the ``/api`` segment only when the path lacks one.
- ``build_request`` converts caller input into a validated
  :class:`ExchangeRequest` and its JSON payload.

No function here performs I/O.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Sequence, Tuple
from urllib.parse import urlsplit

from pydantic import ValidationError

from ..config.defaults import API_SEGMENT, CHAT_COMPLETIONS_PATH
from .errors import ApiError, ErrorKind
from .models import Configuration, ExchangeRequest, Message


def _invalid(message: str) -> ApiError:
    return ApiError(kind=ErrorKind.VALIDATION, message=message)


def validate_config(config: Configuration) -> Optional[ApiError]:
    """Return the first configuration problem, or ``None`` when valid."""
    if not (config.endpoint or "").strip():
        return _invalid("Base URL is required")
    if not (config.app_id or "").strip():
        return _invalid("App ID is required")
    if not (config.credential or "").strip():
        return _invalid("API Key is required")
    try:
        parts = urlsplit(config.endpoint.strip())
    except ValueError:
        return _invalid("Invalid Base URL format")
    if not parts.scheme or not parts.netloc:
        return _invalid("Invalid Base URL format")
    if parts.scheme.lower() not in ("http", "https"):
        return _invalid("Base URL must use HTTP or HTTPS protocol")
    return None


def ensure_valid_config(config: Configuration) -> None:
    """Raise the first configuration problem as an :class:`ApiError`."""
    error = validate_config(config)
    if error is not None:
        raise error


def build_api_url(endpoint: str, path: str = CHAT_COMPLETIONS_PATH) -> str:
    """Return the full URL for ``path`` under ``endpoint``.

    >>> build_api_url("https://fastgpt.io/")
    'https://fastgpt.io/api/v1/chat/completions'
    >>> build_api_url("https://fastgpt.io/api")
    'https://fastgpt.io/api/v1/chat/completions'
    """
    base = endpoint.strip()
    if base.endswith("/"):
        base = base[:-1]
    segments = [s for s in urlsplit(base).path.split("/") if s]
    if API_SEGMENT not in segments:
        base = f"{base}/{API_SEGMENT}"
    return base + path


def build_request(
    messages: "Sequence[Message | Mapping[str, Any]] | ExchangeRequest",
    *,
    conversation_id: Optional[str] = None,
    variables: Optional[Mapping[str, Any]] = None,
    streaming: bool = True,
) -> Tuple[ExchangeRequest, Dict[str, Any]]:
    """Return ``(request, payload)`` or raise a ``validation`` :class:`ApiError`.

    An existing :class:`ExchangeRequest` is re-validated with ``streaming``
    forced to the requested mode.
    """
    try:
        if isinstance(messages, ExchangeRequest):
            request = messages.with_streaming(streaming)
        else:
            request = ExchangeRequest.build(
                messages,
                conversation_id=conversation_id,
                variables=variables,
                streaming=streaming,
            )
        payload = request.to_payload()
    except ValidationError as exc:
        first = exc.errors()[0] if exc.errors() else {}
        where = ".".join(str(p) for p in first.get("loc", ()))
        detail = first.get("msg", str(exc))
        raise ApiError(
            kind=ErrorKind.VALIDATION,
            message=f"Invalid request: {where}: {detail}" if where else f"Invalid request: {detail}",
            raw=exc,
        ) from exc
    except (KeyError, TypeError) as exc:
        raise ApiError(
            kind=ErrorKind.VALIDATION,
            message="Invalid request: messages must provide 'role' and 'content'",
            raw=exc,
        ) from exc
    return request, payload


def build_headers(config: Configuration) -> Dict[str, str]:
    """Request headers for ``config`` (bearer credential, JSON body)."""
    return {
        "Authorization": f"Bearer {config.credential}",
        "Content-Type": "application/json",
    }


__all__ = [
    "validate_config",
    "ensure_valid_config",
    "build_api_url",
    "build_request",
    "build_headers",
]
