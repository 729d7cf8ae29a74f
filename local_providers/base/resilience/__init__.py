"""Resilience helpers (retry policy) shared by every backend client."""

from .retry import DEFAULT_RETRY_CONFIG, RetryConfig, async_retry

__all__ = ["RetryConfig", "DEFAULT_RETRY_CONFIG", "async_retry"]
