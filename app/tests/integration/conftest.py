"""Fixtures for end-to-end dispatch scenarios (Level 3).

Services run real worker threads against in-memory stores and mock channel
adapters. Retries are immediate so scenarios finish quickly.
"""

import time

import pytest

from infrastructure.idempotency import InMemoryIdempotencyLedger
from modules.dispatch import DispatchService


def wait_for(predicate, timeout=10.0, interval=0.01):
    """Poll predicate until it is truthy or the timeout elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return False


@pytest.fixture
def dispatch_service_factory(settings_factory):
    """Factory for a DispatchService with immediate retries.

    Example:
        service = dispatch_service_factory({"email": adapter}, DISPATCH_WORKER_COUNT=4)
        service.start()
    """
    created = []

    def _factory(adapters, start=True, **dispatch):
        settings = settings_factory(
            dispatch={
                "DISPATCH_POLL_INTERVAL_SECONDS": 0.01,
                "DISPATCH_LEASE_SECONDS": 60,
                **dispatch,
            },
            retry={"RETRY_BASE_DELAY_SECONDS": 0, "RETRY_MAX_ATTEMPTS": 3},
        )
        service = DispatchService.from_settings(
            settings,
            adapters=adapters,
            idempotency_ledger=InMemoryIdempotencyLedger(),
        )
        created.append(service)
        if start:
            service.start()
        return service

    yield _factory
    for service in created:
        service.stop(timeout=5)


@pytest.fixture
def settled():
    """Predicate factory: job finished and its lease released."""

    def _settled(service, job_id):
        def check():
            record = service.get_status(job_id)
            return record.status.is_terminal and not service.queues.is_leased(job_id)

        return check

    return _settled


@pytest.fixture(name="wait_for")
def wait_for_fixture():
    return wait_for
