"""Unit tests for the delivery error taxonomy."""

import pytest

from infrastructure.notifications import (
    DeliveryTimeout,
    ProviderPermanent,
    ProviderTransient,
    Unauthenticated,
    delivery_error_from_result,
)
from infrastructure.operations import OperationResult, OperationStatus

pytestmark = pytest.mark.unit


class TestDeliveryErrors:
    def test_retryable_flags(self):
        """Timeouts and transient errors are retryable; the rest are not."""
        assert DeliveryTimeout("t").retryable is True
        assert ProviderTransient("t").retryable is True
        assert ProviderPermanent("p").retryable is False
        assert Unauthenticated("u").retryable is False

    def test_default_codes(self):
        assert DeliveryTimeout("t").error_code == "TIMEOUT"
        assert ProviderPermanent("p", error_code="INVALID_RECIPIENT").error_code == "INVALID_RECIPIENT"


class TestDeliveryErrorFromResult:
    def test_timeout(self):
        error = delivery_error_from_result(
            OperationResult.transient_error("slow", error_code="TIMEOUT")
        )

        assert isinstance(error, DeliveryTimeout)

    def test_transient_keeps_retry_after(self):
        error = delivery_error_from_result(
            OperationResult.error(
                OperationStatus.TRANSIENT_ERROR, "rl", error_code="RATE_LIMITED", retry_after=9
            )
        )

        assert isinstance(error, ProviderTransient)
        assert error.retry_after == 9

    def test_unauthorized(self):
        error = delivery_error_from_result(
            OperationResult.error(OperationStatus.UNAUTHORIZED, "no", error_code="FORBIDDEN")
        )

        assert isinstance(error, Unauthenticated)

    @pytest.mark.parametrize(
        "status", [OperationStatus.PERMANENT_ERROR, OperationStatus.NOT_FOUND]
    )
    def test_permanent(self, status):
        error = delivery_error_from_result(OperationResult.error(status, "x", error_code="E"))

        assert isinstance(error, ProviderPermanent)
