"""Test data factories for deterministic test data generation."""

from tests.factories.dispatch import (
    FakeClock,
    make_job,
    make_notification_request,
)
from tests.factories.notifications import (
    make_channel_adapter,
    make_receipt,
    make_resolved_notification,
)

__all__ = [
    "FakeClock",
    "make_job",
    "make_notification_request",
    "make_channel_adapter",
    "make_receipt",
    "make_resolved_notification",
]
