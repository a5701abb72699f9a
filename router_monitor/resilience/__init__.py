"""Resilience helpers."""

from .retry import RetryConfig, retry_with_backoff

__all__ = ["RetryConfig", "retry_with_backoff"]
