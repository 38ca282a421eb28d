"""HTTP utilities for the client (async client construction)."""

from .client import build_async_client

__all__ = ["build_async_client"]
