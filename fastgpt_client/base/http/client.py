"""HTTP client construction.

Purpose:
    Build the ``httpx.AsyncClient`` owned by one :class:`FastGPTClient`.
    Timeouts derive from :class:`TimeoutConfig` (defaults or environment via
    :func:`get_timeout_config`); no numeric literals live here.

External dependencies:
    - ``httpx`` for the asynchronous HTTP client and transports.

Lifecycle:
    - There is no module-level pool. Each client instance owns its
      ``AsyncClient`` and closes it in ``aclose``; configurations are
      therefore never shared across clients.
    - Tests pass ``httpx.MockTransport`` as ``transport`` to replace the
      network entirely.
"""

from __future__ import annotations

from typing import Optional

import httpx

from ..timeouts import TimeoutConfig, get_timeout_config


def build_async_client(
    *,
    timeout_cfg: Optional[TimeoutConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Return a new ``httpx.AsyncClient`` configured with client timeouts.

    Parameters:
        timeout_cfg: Explicit timeouts; ``None`` reads the cached
            environment-derived configuration.
        transport: Optional transport override (mock or custom pool).
    """
    cfg = timeout_cfg or get_timeout_config()
    kwargs = {"timeout": cfg.to_httpx(), "follow_redirects": False}
    if transport is not None:
        kwargs["transport"] = transport
    return httpx.AsyncClient(**kwargs)


__all__ = ["build_async_client"]
