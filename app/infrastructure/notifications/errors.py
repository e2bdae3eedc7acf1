"""Typed delivery errors raised by channel adapters.

Every adapter failure is one of these, so the retry controller can classify
it without inspecting provider specifics:

- DeliveryTimeout: the call exceeded its time budget (retryable)
- ProviderTransient: 5xx, rate limiting, network failure (retryable)
- ProviderPermanent: invalid recipient, rejected content (dead-lettered)
- Unauthenticated: provider credentials rejected (dead-lettered)
"""

from typing import Optional

from infrastructure.operations import OperationResult, OperationStatus


class DeliveryError(Exception):
    """Base class for channel delivery failures.

    Attributes:
        message: human-friendly message (kept in attempt history only)
        error_code: machine error code
        retryable: whether another attempt may succeed
        retry_after: optional provider hint in seconds
    """

    retryable = False
    default_code = "DELIVERY_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        retry_after: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.retry_after = retry_after


class DeliveryTimeout(DeliveryError):
    """The adapter call did not complete within its timeout."""

    retryable = True
    default_code = "TIMEOUT"


class ProviderTransient(DeliveryError):
    """The provider failed in a way that may succeed on retry."""

    retryable = True
    default_code = "PROVIDER_TRANSIENT"


class ProviderPermanent(DeliveryError):
    """The provider rejected the notification; retrying will not help."""

    default_code = "PROVIDER_PERMANENT"


class Unauthenticated(DeliveryError):
    """The provider rejected our credentials."""

    default_code = "UNAUTHENTICATED"


def delivery_error_from_result(result: OperationResult) -> DeliveryError:
    """Map a classified OperationResult onto the delivery error taxonomy."""
    if result.status == OperationStatus.TRANSIENT_ERROR:
        if result.error_code == "TIMEOUT":
            return DeliveryTimeout(result.message, result.error_code)
        return ProviderTransient(
            result.message, result.error_code, retry_after=result.retry_after
        )
    if result.status == OperationStatus.UNAUTHORIZED:
        return Unauthenticated(result.message, result.error_code)
    return ProviderPermanent(result.message, result.error_code)
