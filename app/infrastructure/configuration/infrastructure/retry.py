"""Retry system infrastructure settings."""

from pydantic import Field, model_validator

from infrastructure.configuration.base import SectionSettings


class RetrySettings(SectionSettings):
    """Retry policy for delivery attempts and ledger writes.

    Environment Variables:
        RETRY_MAX_ATTEMPTS: Delivery attempts before a job is dead-lettered (default: 3)
        RETRY_BASE_DELAY_SECONDS: Base exponential backoff delay (default: 5s)
        RETRY_MAX_DELAY_SECONDS: Maximum backoff delay (default: 300s)
        RETRY_JITTER_RATIO: Random spread applied to each delay, in [0, 1) (default: 0.2)
        RETRY_STATUS_WRITE_ATTEMPTS: Attempts for a status ledger write (default: 5)

    Exponential Backoff:
        Delay calculation: min(base_delay * (2 ^ (attempt - 1)), max_delay) +/- jitter

        Example with defaults (base=5s, max=300s, jitter=0.2):
            After attempt 1: 4s - 6s
            After attempt 2: 8s - 12s
            After attempt 3: dead-lettered (max_attempts reached)

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()

        max_attempts = settings.retry.max_attempts
        ```
    """

    max_attempts: int = Field(
        default=3,
        alias="RETRY_MAX_ATTEMPTS",
        ge=1,
        description="Delivery attempts before moving a job to the dead-letter store",
    )
    base_delay_seconds: float = Field(
        default=5,
        alias="RETRY_BASE_DELAY_SECONDS",
        ge=0,
        description="Base delay for exponential backoff (seconds)",
    )
    max_delay_seconds: float = Field(
        default=300,
        alias="RETRY_MAX_DELAY_SECONDS",
        gt=0,
        description="Maximum delay for exponential backoff (seconds)",
    )
    jitter_ratio: float = Field(
        default=0.2,
        alias="RETRY_JITTER_RATIO",
        ge=0,
        lt=1,
        description="Fraction of each delay randomized in both directions",
    )
    status_write_attempts: int = Field(
        default=5,
        alias="RETRY_STATUS_WRITE_ATTEMPTS",
        ge=1,
        description="Attempts for persisting a delivery outcome",
    )

    @model_validator(mode="after")
    def validate_delays(self) -> "RetrySettings":
        """Reject a cap lower than the base delay."""
        if self.max_delay_seconds < self.base_delay_seconds:
            raise ValueError(
                "RETRY_MAX_DELAY_SECONDS must be >= RETRY_BASE_DELAY_SECONDS"
            )
        return self
