"""Exponential backoff and a bounded retry helper.

Usage:
    from infrastructure.resilience.retry import RetryConfig, calculate_backoff

    delay = calculate_backoff(attempt=2, config=RetryConfig())

    call_with_retry(
        lambda: ledger.record_attempt(...),
        attempts=5,
        base_delay_seconds=0.1,
        max_delay_seconds=2,
        operation="record_attempt",
    )
"""

import random
import time
from typing import Callable, Optional, Tuple, Type, TypeVar

from infrastructure.logging import get_module_logger
from infrastructure.resilience.retry.config import RetryConfig

logger = get_module_logger()

T = TypeVar("T")


def calculate_backoff(
    attempt: int,
    config: RetryConfig,
    retry_after: Optional[float] = None,
    rng: Callable[[], float] = random.random,
) -> float:
    """Calculate the delay before the next attempt.

    Uses the formula: min(max_delay, base_delay * 2^(attempt - 1)), then
    spreads it by +/- jitter_ratio. A provider retry_after hint raises the
    delay to at least that value, still capped at max_delay.

    Args:
        attempt: Number of attempts already made (1 after the first failure)
        config: RetryConfig with base, cap and jitter
        retry_after: Optional provider hint in seconds
        rng: Source of uniform values in [0, 1), injectable for tests

    Returns:
        Delay in seconds, never negative
    """
    exponent = max(attempt - 1, 0)
    delay = min(config.max_delay_seconds, config.base_delay_seconds * (2**exponent))

    if config.jitter_ratio:
        spread = delay * config.jitter_ratio
        delay = delay - spread + (2 * spread * rng())

    if retry_after is not None:
        delay = max(delay, float(retry_after))

    return max(0.0, min(delay, config.max_delay_seconds))


def call_with_retry(
    func: Callable[[], T],
    attempts: int,
    base_delay_seconds: float = 0.1,
    max_delay_seconds: float = 2.0,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    operation: str = "operation",
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call func, retrying with exponential backoff on the given exceptions.

    The last exception is re-raised once attempts are exhausted; exceptions
    outside retry_on propagate immediately.

    Args:
        func: Zero-argument callable to invoke
        attempts: Total number of calls allowed (at least 1)
        base_delay_seconds: Delay after the first failure
        max_delay_seconds: Cap for the delay
        retry_on: Exception types that trigger another attempt
        operation: Name used in log events
        sleep: Sleep function, injectable for tests

    Returns:
        Whatever func returns
    """
    config = RetryConfig(
        max_attempts=max(attempts, 1),
        base_delay_seconds=base_delay_seconds,
        max_delay_seconds=max(max_delay_seconds, base_delay_seconds),
        jitter_ratio=0.0,
    )

    attempt = 0
    while True:
        attempt += 1
        try:
            return func()
        except retry_on as exc:
            if attempt >= config.max_attempts:
                logger.error(
                    "retry_exhausted",
                    operation=operation,
                    attempts=attempt,
                    error=str(exc),
                )
                raise
            delay = calculate_backoff(attempt, config)
            logger.warning(
                "retry_scheduled",
                operation=operation,
                attempt=attempt,
                max_attempts=config.max_attempts,
                next_retry_in_seconds=delay,
                error=str(exc),
            )
            sleep(delay)
