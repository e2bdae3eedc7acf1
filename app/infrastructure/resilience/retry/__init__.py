"""Retry policy for failed delivery attempts and ledger writes.

Architecture:
- RetryConfig: Configuration for attempts, backoff and jitter
- RetryResult: Outcome of an attempt as seen by the retry controller
- calculate_backoff: Exponential backoff with jitter and retry-after hints
- call_with_retry: Bounded retry helper for internal writes

Usage:
    from infrastructure.resilience.retry import RetryConfig, calculate_backoff

    config = RetryConfig.from_settings(settings.retry)
    delay = calculate_backoff(job.attempt_count, config)
"""

from infrastructure.resilience.retry.config import RetryConfig
from infrastructure.resilience.retry.models import RetryResult
from infrastructure.resilience.retry.backoff import calculate_backoff, call_with_retry

__all__ = [
    "RetryConfig",
    "RetryResult",
    "calculate_backoff",
    "call_with_retry",
]
