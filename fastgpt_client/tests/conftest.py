"""Shared fixtures for the client test suite.

Provides a valid configuration, a recording sleep, a deterministic jitter
source, a log collector attached to the shared ``fastgpt`` logger, and a
factory for clients wired to ``httpx.MockTransport``.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

import httpx
import pytest

from fastgpt_client.base.logging import get_logger
from fastgpt_client.base.models import Configuration
from fastgpt_client.base.resilience.retry import RetryPolicy
from fastgpt_client.base.timeouts import TimeoutConfig
from fastgpt_client.fastgpt.client import FastGPTClient
from fastgpt_client.tests.helpers import FixedRandom, ListHandler, RecordingSleep


@pytest.fixture()
def config() -> Configuration:
    return Configuration(endpoint="https://fastgpt.io", app_id="app-123", credential="fastgpt-secret-key")


@pytest.fixture()
def fast_policy() -> RetryPolicy:
    return RetryPolicy(max_retries=3, base_delay=1.0, max_delay=10.0, backoff_multiplier=2.0)


@pytest.fixture()
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture()
def zero_rng() -> FixedRandom:
    return FixedRandom(0.0)


@pytest.fixture()
def log_capture():
    """Attach a collecting handler to the shared ``fastgpt`` logger at DEBUG.

    The shared logger does not propagate to the root logger, so ``caplog``
    would not see these records.
    """
    base = get_logger()
    handler = ListHandler()
    previous = base.level
    base.addHandler(handler)
    base.setLevel(logging.DEBUG)
    try:
        yield handler
    finally:
        base.removeHandler(handler)
        base.setLevel(previous)


@pytest.fixture()
def make_client(config, fast_policy, recording_sleep, zero_rng) -> Callable[..., FastGPTClient]:
    """Return a factory building clients over ``httpx.MockTransport``."""

    def _make(
        handler: Callable[[httpx.Request], httpx.Response],
        *,
        cfg: Optional[Configuration] = None,
        policy: Optional[RetryPolicy] = None,
        timeouts: Optional[TimeoutConfig] = None,
    ) -> FastGPTClient:
        return FastGPTClient(
            cfg or config,
            retry_policy=policy or fast_policy,
            timeouts=timeouts or TimeoutConfig(),
            transport=httpx.MockTransport(handler),
            sleep=recording_sleep,
            rng=zero_rng,
        )

    return _make
