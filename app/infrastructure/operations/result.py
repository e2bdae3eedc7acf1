"""Result of a provider call, classifier decision or channel health check."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from infrastructure.operations.status import OperationStatus


@dataclass(frozen=True)
class OperationResult:
    """Immutable outcome of a single provider interaction.

    Attributes:
        status: Outcome class
        message: Human-readable detail for logs; never shown to API callers
        data: Decoded provider payload on success
        error_code: Stable machine code such as ``TIMEOUT`` or ``HTTP_400``
        retry_after: Provider back-off hint in seconds
    """

    status: OperationStatus
    message: str
    data: Optional[Any] = None
    error_code: Optional[str] = None
    retry_after: Optional[int] = None

    @property
    def is_success(self) -> bool:
        return self.status is OperationStatus.SUCCESS

    @property
    def is_retryable(self) -> bool:
        return self.status.retryable

    @classmethod
    def success(cls, data: Optional[Any] = None, message: str = "ok") -> "OperationResult":
        return cls(OperationStatus.SUCCESS, message, data=data)

    @classmethod
    def error(
        cls,
        status: OperationStatus,
        message: str,
        error_code: Optional[str] = None,
        retry_after: Optional[int] = None,
        data: Optional[Any] = None,
    ) -> "OperationResult":
        return cls(status, message, data, error_code, retry_after)

    @classmethod
    def transient_error(
        cls,
        message: str,
        error_code: Optional[str] = None,
        retry_after: Optional[int] = None,
    ) -> "OperationResult":
        return cls(OperationStatus.TRANSIENT_ERROR, message, None, error_code, retry_after)

    @classmethod
    def permanent_error(
        cls, message: str, error_code: Optional[str] = None
    ) -> "OperationResult":
        return cls(OperationStatus.PERMANENT_ERROR, message, None, error_code)

    def as_health(self) -> Dict[str, Any]:
        """Shape used for one channel in the /health response."""
        return {
            "healthy": self.is_success,
            "status": self.status.value,
            "message": self.message,
        }
