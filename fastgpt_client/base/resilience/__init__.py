"""Resilience helpers (retry executor)."""

from .retry import DEFAULT_RETRY_POLICY, RetryPolicy, execute_with_retry

__all__ = ["DEFAULT_RETRY_POLICY", "RetryPolicy", "execute_with_retry"]
