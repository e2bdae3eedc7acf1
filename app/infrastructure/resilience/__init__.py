"""Resilience patterns and implementations.

This module contains the retry policy used by the dispatch worker pool:
exponential backoff with jitter, retry outcomes and a bounded retry helper
for ledger writes.
"""

from infrastructure.resilience.retry import (
    RetryConfig,
    RetryResult,
    calculate_backoff,
    call_with_retry,
)

__all__ = [
    "RetryConfig",
    "RetryResult",
    "calculate_backoff",
    "call_with_retry",
]
