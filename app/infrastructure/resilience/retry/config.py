"""Retry system configuration.

This module defines configuration for delivery retry behavior.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from infrastructure.configuration import RetrySettings


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior.

    Attributes:
        max_attempts: Delivery attempts before a job is dead-lettered
        base_delay_seconds: Delay after the first failed attempt
        max_delay_seconds: Cap for exponential backoff
        jitter_ratio: Fraction of each delay randomized in both directions
        status_write_attempts: Attempts for persisting a delivery outcome

    Example:
        # Default configuration
        config = RetryConfig()

        # Custom configuration
        config = RetryConfig(max_attempts=5, base_delay_seconds=1)
    """

    max_attempts: int = 3
    base_delay_seconds: float = 5.0
    max_delay_seconds: float = 300.0
    jitter_ratio: float = 0.2
    status_write_attempts: int = 5

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay_seconds < 0:
            raise ValueError("base_delay_seconds must not be negative")
        if self.max_delay_seconds < self.base_delay_seconds:
            raise ValueError("max_delay_seconds must be >= base_delay_seconds")
        if not 0 <= self.jitter_ratio < 1:
            raise ValueError("jitter_ratio must be in [0, 1)")
        if self.status_write_attempts < 1:
            raise ValueError("status_write_attempts must be at least 1")

    @classmethod
    def from_settings(cls, settings: "RetrySettings") -> "RetryConfig":
        """Build a RetryConfig from RetrySettings."""
        return cls(
            max_attempts=settings.max_attempts,
            base_delay_seconds=settings.base_delay_seconds,
            max_delay_seconds=settings.max_delay_seconds,
            jitter_ratio=settings.jitter_ratio,
            status_write_attempts=settings.status_write_attempts,
        )
