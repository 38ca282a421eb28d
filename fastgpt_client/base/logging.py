"""Structured logging utilities for the client.

Rationale:
- Central place to configure consistent JSON (or plain) logging.
- Avoid ad-hoc logger setup across modules; everything hangs off the shared
  ``fastgpt`` logger.

``normalized_log_event`` wraps ``log_event`` and guarantees a canonical key
set (``phase``, ``attempt``, ``error_code``, ``emitted``) so retry and stream
events can be filtered uniformly. Credentials must never be passed as fields.
"""
from __future__ import annotations

import contextlib
import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional

from .log_support import JsonFormatter, LogContext

BASE_LOGGER_NAME = "fastgpt"
_BASE_LOGGER_ATTR = "_fastgpt_logger_initialized"
_CONSOLE_HANDLER_ATTR = "_fastgpt_console_handler"
_FILE_HANDLER_ATTR = "_fastgpt_file_handler"
_PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _parse_level(value: str | None, default: int = logging.INFO) -> int:
    """Parse a logging level name (case-insensitive); unknown names give ``default``."""
    if not value:
        return default
    mapping = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARN": logging.WARNING,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return mapping.get(value.strip().upper(), default)


def _formatter(json_mode: bool) -> logging.Formatter:
    return JsonFormatter() if json_mode else logging.Formatter(_PLAIN_FORMAT)


def _ensure_base_logger(json_mode: bool, level: int) -> logging.Logger:
    """Initialize (once) and return the shared ``fastgpt`` logger."""
    logger = logging.getLogger(BASE_LOGGER_NAME)
    if getattr(logger, _BASE_LOGGER_ATTR, False):
        return logger

    desired = _parse_level(os.getenv("FASTGPT_LOG_LEVEL"), default=level)
    logger.setLevel(desired)
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(desired)
    handler.setFormatter(_formatter(json_mode))
    setattr(handler, _CONSOLE_HANDLER_ATTR, True)
    logger.handlers[:] = [handler]
    logger.propagate = False
    setattr(logger, _BASE_LOGGER_ATTR, True)
    return logger


def get_logger(name: str = BASE_LOGGER_NAME, json_mode: bool = True, level: int = logging.WARNING) -> logging.Logger:
    """Return a logger under the shared ``fastgpt`` hierarchy.

    Child loggers carry no handlers of their own and propagate to the base
    logger, so level and formatting are controlled in one place.
    """
    base = _ensure_base_logger(json_mode=json_mode, level=level)
    if name == BASE_LOGGER_NAME:
        return base
    if not name.startswith(BASE_LOGGER_NAME + "."):
        name = f"{BASE_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logger(
    *,
    level: int | str | None = None,
    file_path: Optional[str] = None,
    json_mode: bool = True,
) -> logging.Logger:
    """Reconfigure the shared logger at runtime.

    Parameters
    ----------
    level:
        Desired level (number or name). ``None`` keeps the current level.
    file_path:
        When provided, a rotating file handler writing to ``file_path`` is
        attached (or re-pointed). When ``None`` any managed file handler is
        removed. Handlers attached by the application are left untouched.
    json_mode:
        JSON formatter (default) or plain text for the managed handlers.
    """
    logger = _ensure_base_logger(json_mode=json_mode, level=logging.WARNING)

    if level is not None:
        resolved = _parse_level(level, default=logger.level) if isinstance(level, str) else level
        logger.setLevel(resolved)
        for h in logger.handlers:
            if getattr(h, _CONSOLE_HANDLER_ATTR, False) or getattr(h, _FILE_HANDLER_ATTR, False):
                h.setLevel(resolved)

    for h in logger.handlers:
        if getattr(h, _CONSOLE_HANDLER_ATTR, False):
            h.setFormatter(_formatter(json_mode))

    managed = [h for h in logger.handlers if getattr(h, _FILE_HANDLER_ATTR, False)]
    abs_path = os.path.abspath(os.path.expanduser(file_path)) if file_path else None
    for h in managed:
        if abs_path is not None and getattr(h, "baseFilename", None) == abs_path:
            h.setFormatter(_formatter(json_mode))
            h.setLevel(logger.level)
            continue
        logger.removeHandler(h)
        with contextlib.suppress(OSError):
            h.close()
    if abs_path is None or any(getattr(h, "baseFilename", None) == abs_path for h in logger.handlers):
        return logger

    os.makedirs(os.path.dirname(abs_path), exist_ok=True)
    fh = RotatingFileHandler(abs_path, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8")
    setattr(fh, _FILE_HANDLER_ATTR, True)
    fh.setLevel(logger.level)
    fh.setFormatter(_formatter(json_mode))
    logger.addHandler(fh)
    return logger


def log_event(
    logger: logging.Logger,
    event: str,
    ctx: LogContext | None = None,
    *,
    level: int = logging.INFO,
    keep_none: bool = False,
    **fields: Any,
) -> None:
    """Emit a structured log event as a single JSON line.

    ``None`` valued fields are dropped unless ``keep_none`` is set.
    """
    if not logger.isEnabledFor(level):
        return
    payload: Dict[str, Any] = {"event": event}
    if ctx:
        payload |= ctx.to_dict()
    if keep_none:
        payload.update(fields)
    else:
        payload.update({k: v for k, v in fields.items() if v is not None})
    logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))


REQUIRED_NORMALIZED_KEYS = ("phase", "attempt", "emitted")


def normalized_log_event(
    logger: logging.Logger,
    event: str,
    ctx: LogContext | None = None,
    *,
    phase: str,
    attempt: int | None = None,
    error_code: str | None = None,
    emitted: int | None = None,
    level: int = logging.INFO,
    **extra_fields: Any,
) -> None:
    """Emit a structured event with the normalized key set.

    ``phase``, ``attempt`` and ``emitted`` are always present (possibly
    ``null``); ``error_code`` only when set. Extra fields never overwrite the
    normalized values.
    """
    fields: Dict[str, Any] = {"phase": phase, "attempt": attempt, "emitted": emitted}
    if error_code is not None:
        fields["error_code"] = error_code
    for k, v in extra_fields.items():
        if v is None or k in fields:
            continue
        fields[k] = v
    log_event(logger, event, ctx, level=level, keep_none=True, **fields)


__all__ = [
    "BASE_LOGGER_NAME",
    "LogContext",
    "get_logger",
    "configure_logger",
    "log_event",
    "normalized_log_event",
    "REQUIRED_NORMALIZED_KEYS",
]
