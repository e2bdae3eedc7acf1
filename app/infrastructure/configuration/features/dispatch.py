"""Dispatch feature settings."""

from pydantic import Field, model_validator

from infrastructure.configuration.base import SectionSettings


class DispatchSettings(SectionSettings):
    """Notification dispatch configuration (queues, workers, adapter timeouts).

    Environment Variables:
        DISPATCH_WORKER_COUNT: Number of dispatch worker threads (default: 4)
        DISPATCH_QUEUE_CAPACITY_HIGH: Max jobs waiting in the high queue (default: 1000)
        DISPATCH_QUEUE_CAPACITY_LOW: Max jobs waiting in the low queue (default: 5000)
        DISPATCH_POLL_INTERVAL_SECONDS: Max time a worker blocks waiting for work (default: 1.0)
        DISPATCH_LEASE_SECONDS: How long a claimed job stays invisible (default: 300s)
        DISPATCH_MAINTENANCE_INTERVAL_SECONDS: Lease reaper and purge interval (default: 30s)
        DISPATCH_EMAIL_TIMEOUT_SECONDS: Email adapter call timeout (default: 30s)
        DISPATCH_SMS_TIMEOUT_SECONDS: SMS adapter call timeout (default: 10s)
        DISPATCH_PUSH_TIMEOUT_SECONDS: Push adapter call timeout (default: 30s)
        DISPATCH_MAX_PAYLOAD_BYTES: Max serialized payload size (default: 16384)
        DISPATCH_STATUS_RETENTION_SECONDS: Status record retention (default: 30 days)

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()

        workers = settings.dispatch.worker_count
        sms_timeout = settings.dispatch.timeout_for("sms")
        ```
    """

    worker_count: int = Field(default=4, alias="DISPATCH_WORKER_COUNT", ge=1)
    queue_capacity_high: int = Field(
        default=1000, alias="DISPATCH_QUEUE_CAPACITY_HIGH", ge=1
    )
    queue_capacity_low: int = Field(
        default=5000, alias="DISPATCH_QUEUE_CAPACITY_LOW", ge=1
    )
    poll_interval_seconds: float = Field(
        default=1.0, alias="DISPATCH_POLL_INTERVAL_SECONDS", gt=0
    )
    lease_seconds: float = Field(default=300, alias="DISPATCH_LEASE_SECONDS", gt=0)
    maintenance_interval_seconds: int = Field(
        default=30, alias="DISPATCH_MAINTENANCE_INTERVAL_SECONDS", ge=1
    )
    email_timeout_seconds: float = Field(
        default=30, alias="DISPATCH_EMAIL_TIMEOUT_SECONDS", gt=0
    )
    sms_timeout_seconds: float = Field(
        default=10, alias="DISPATCH_SMS_TIMEOUT_SECONDS", gt=0
    )
    push_timeout_seconds: float = Field(
        default=30, alias="DISPATCH_PUSH_TIMEOUT_SECONDS", gt=0
    )
    max_payload_bytes: int = Field(
        default=16384, alias="DISPATCH_MAX_PAYLOAD_BYTES", ge=1
    )
    status_retention_seconds: int = Field(
        default=30 * 24 * 3600, alias="DISPATCH_STATUS_RETENTION_SECONDS", ge=1
    )

    @model_validator(mode="after")
    def validate_lease(self) -> "DispatchSettings":
        """A lease must outlive the longest adapter call it protects."""
        longest = max(
            self.email_timeout_seconds,
            self.sms_timeout_seconds,
            self.push_timeout_seconds,
        )
        if self.lease_seconds <= longest:
            raise ValueError(
                "DISPATCH_LEASE_SECONDS must be greater than every adapter timeout"
            )
        return self

    def timeout_for(self, channel: str) -> float:
        """Return the adapter timeout for a channel name."""
        timeouts = {
            "email": self.email_timeout_seconds,
            "sms": self.sms_timeout_seconds,
            "push": self.push_timeout_seconds,
        }
        return timeouts.get(channel, self.email_timeout_seconds)
