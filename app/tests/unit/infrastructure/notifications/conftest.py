"""Fixtures for channel adapter tests."""

import json
from unittest.mock import MagicMock

import pytest
import requests

from infrastructure.configuration.integrations import NotifySettings, PushSettings
from tests.factories import make_resolved_notification


@pytest.fixture
def notify_settings():
    return NotifySettings(
        NOTIFY_API_URL="https://api.notify.example/",
        NOTIFY_SERVICE_ID="service-id",
        NOTIFY_API_SECRET="api-secret",
        NOTIFY_EMAIL_TEMPLATE_ID="email-template",
        NOTIFY_SMS_TEMPLATE_ID="sms-template",
        NOTIFY_TEMPLATE_IDS={"invoice": "0b6a7f1e-3c2d-4e5f-8a9b-1c2d3e4f5a6b"},
    )


@pytest.fixture
def push_settings():
    return PushSettings(PUSH_API_URL="https://push.example", PUSH_API_TOKEN="push-token")


@pytest.fixture
def resolved_notification_factory():
    return make_resolved_notification


@pytest.fixture
def http_response_factory():
    """Factory for requests.Response objects with a JSON body."""

    def _factory(status_code=201, body=None, headers=None):
        response = requests.Response()
        response.status_code = status_code
        response._content = json.dumps(body if body is not None else {}).encode("utf-8")
        response.headers.update(headers or {})
        return response

    return _factory


@pytest.fixture
def mock_session():
    return MagicMock(spec=requests.Session)
