"""Fixtures for API route tests."""

import pytest
from fastapi.testclient import TestClient

from api.dependencies.rate_limits import limiter
from api.router import api_router
from infrastructure.idempotency import InMemoryIdempotencyLedger
from modules.dispatch import DispatchService
from utils.tests import create_test_app


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def dispatch_service_factory(settings_factory, channel_adapter_factory):
    """Factory for a DispatchService whose workers are not started."""
    created = []

    def _factory(**dispatch):
        service = DispatchService.from_settings(
            settings_factory(dispatch=dispatch),
            adapters={"email": channel_adapter_factory("email")},
            idempotency_ledger=InMemoryIdempotencyLedger(),
        )
        created.append(service)
        return service

    yield _factory
    for service in created:
        service.stop(timeout=1)


@pytest.fixture
def dispatch_service(dispatch_service_factory):
    return dispatch_service_factory()


@pytest.fixture
def client(dispatch_service):
    return TestClient(create_test_app(api_router, dispatch_service=dispatch_service))


@pytest.fixture
def caller_headers():
    return {"X-Caller-ID": "billing", "Idempotency-Key": "invoice-42"}


@pytest.fixture
def submission_body():
    return {
        "recipient_id": "user-123",
        "channel": "email",
        "priority": "high",
        "template": "invoice",
        "payload": {"email_address": "user@example.com", "body": "Your invoice"},
    }
