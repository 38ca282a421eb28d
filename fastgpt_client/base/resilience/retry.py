"""Async retry executor with exponential backoff and jitter.

``execute_with_retry`` runs an awaitable factory up to
``policy.max_retries + 1`` times. Every failure is classified with
:func:`classify_exception`; non-retryable failures are re-raised at once,
retryable ones are retried after :meth:`RetryPolicy.compute_delay`, and the
last error is re-raised unchanged when attempts run out.

Cancellation (``CancelledError`` from a token, ``asyncio.CancelledError``
from the event loop) is never retried. State is local to one invocation.
"""
from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Protocol, TypeVar

from ...config.defaults import (
    DEFAULT_BACKOFF_MULTIPLIER,
    DEFAULT_BASE_DELAY_SECONDS,
    DEFAULT_MAX_DELAY_SECONDS,
    DEFAULT_MAX_RETRIES,
    RETRY_JITTER_RATIO,
)
from ...config.env import get_float_setting, get_int_setting
from ..cancellation import CancellationToken, CancelledError
from ..errors import ApiError, classify_exception
from ..logging import LogContext, get_logger, normalized_log_event

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]

logger = get_logger("fastgpt.retry")


class AttemptLogger(Protocol):  # pragma: no cover - structural protocol
    def __call__(
        self,
        *,
        attempt: int,
        max_attempts: int,
        delay: float | None,
        error: ApiError | None,
    ) -> None: ...


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff parameters (seconds).

    Attributes:
        max_retries: Retries after the first attempt (total attempts is
            ``max_retries + 1``).
        base_delay: Delay before the first retry.
        max_delay: Upper bound of any computed delay.
        backoff_multiplier: Growth factor per attempt.
    """

    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay: float = DEFAULT_BASE_DELAY_SECONDS
    max_delay: float = DEFAULT_MAX_DELAY_SECONDS
    backoff_multiplier: float = DEFAULT_BACKOFF_MULTIPLIER

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be >= 0")
        if self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be >= 1")

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    @classmethod
    def from_env(cls) -> "RetryPolicy":
        """Build a policy from ``FASTGPT_MAX_RETRIES`` and friends."""
        max_retries = get_int_setting("max_retries")
        base_delay = get_float_setting("base_delay", allow_zero=True)
        max_delay = get_float_setting("max_delay", allow_zero=True)
        multiplier = get_float_setting("backoff_multiplier")
        return cls(
            max_retries=DEFAULT_MAX_RETRIES if max_retries is None else max_retries,
            base_delay=DEFAULT_BASE_DELAY_SECONDS if base_delay is None else base_delay,
            max_delay=DEFAULT_MAX_DELAY_SECONDS if max_delay is None else max_delay,
            backoff_multiplier=(
                DEFAULT_BACKOFF_MULTIPLIER if multiplier is None or multiplier < 1 else multiplier
            ),
        )

    def compute_delay(
        self,
        attempt: int,
        error: ApiError | None = None,
        rng: random.Random | None = None,
    ) -> float:
        """Return the sleep before retrying after failed attempt ``attempt`` (0-based).

        Rate-limited errors shift the exponent by one; a ``Retry-After`` hint
        replaces the computed value entirely.
        """
        if error is not None and error.retry_after_seconds is not None:
            return error.retry_after_seconds
        exponent = attempt + 1 if (error is not None and error.is_rate_limited) else attempt
        delay = min(self.base_delay * (self.backoff_multiplier ** exponent), self.max_delay)
        jitter = (rng or random).random() * RETRY_JITTER_RATIO * delay
        return min(delay + jitter, self.max_delay)


DEFAULT_RETRY_POLICY = RetryPolicy()


async def execute_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    *,
    token: Optional[CancellationToken] = None,
    ctx: Optional[LogContext] = None,
    attempt_logger: Optional[AttemptLogger] = None,
    sleep: Optional[SleepFunc] = None,
    rng: Optional[random.Random] = None,
) -> T:
    """Run ``operation`` with the retry policy.

    Args:
        operation: Zero-argument coroutine factory; called once per attempt.
        policy: Backoff parameters.
        token: Optional cancellation token checked before every attempt.
        ctx: Logging context for ``retry.attempt`` events.
        attempt_logger: Optional hook receiving each attempt outcome.
        sleep: Injectable sleep (defaults to ``asyncio.sleep``).
        rng: Injectable random source for deterministic jitter.

    Raises:
        The last error raised by ``operation`` (unchanged), or
        ``CancelledError`` when the token fires.
    """
    _sleep = sleep or asyncio.sleep
    for attempt in range(policy.max_attempts):
        if token is not None:
            token.raise_if_cancelled()
        try:
            result = await operation()
        except CancelledError:
            raise
        except Exception as exc:
            error = classify_exception(exc)
            last_attempt = attempt == policy.max_retries
            delay = None
            if error.retryable and not last_attempt:
                delay = policy.compute_delay(attempt, error, rng)
            normalized_log_event(
                logger,
                "retry.attempt",
                ctx,
                phase="retry",
                attempt=attempt,
                error_code=error.kind.value,
                emitted=None,
                status=error.code,
                retryable=error.retryable,
                delay_seconds=delay,
            )
            if attempt_logger is not None:
                attempt_logger(attempt=attempt, max_attempts=policy.max_attempts, delay=delay, error=error)
            if delay is None:
                raise
            await _sleep(delay)
            continue
        if attempt_logger is not None:
            attempt_logger(attempt=attempt, max_attempts=policy.max_attempts, delay=None, error=None)
        return result
    # Unreachable: the final attempt either returns or raises.
    raise RuntimeError("execute_with_retry: reached terminal state without outcome")


__all__ = [
    "AttemptLogger",
    "RetryPolicy",
    "DEFAULT_RETRY_POLICY",
    "SleepFunc",
    "execute_with_retry",
]
