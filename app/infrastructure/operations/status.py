from enum import Enum


class OperationStatus(Enum):
    """Outcome class of a provider call or health check."""

    SUCCESS = "success"
    TRANSIENT_ERROR = "transient_error"
    PERMANENT_ERROR = "permanent_error"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"

    @property
    def retryable(self) -> bool:
        # Only transient failures (timeouts, 429, 5xx, network) earn another attempt
        return self is OperationStatus.TRANSIENT_ERROR
