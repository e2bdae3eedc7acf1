"""Root fixtures shared by unit and integration tests (Level 1)."""

from typing import Any, Dict, Optional

import pytest

from infrastructure.configuration import (
    DispatchSettings,
    IdempotencySettings,
    RetrySettings,
    Settings,
)
from infrastructure.configuration.integrations import (
    AwsSettings,
    NotifySettings,
    PushSettings,
)
from infrastructure.services import get_settings
from tests.factories import (
    FakeClock,
    make_channel_adapter,
    make_job,
    make_notification_request,
)


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Make every test load settings from scratch."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings_factory():
    """Factory for Settings built from explicit environment-style overrides.

    Example:
        settings = settings_factory(
            dispatch={"DISPATCH_WORKER_COUNT": 1},
            retry={"RETRY_MAX_ATTEMPTS": 2},
        )
    """

    def _factory(
        dispatch: Optional[Dict[str, Any]] = None,
        retry: Optional[Dict[str, Any]] = None,
        idempotency: Optional[Dict[str, Any]] = None,
        notify: Optional[Dict[str, Any]] = None,
        push: Optional[Dict[str, Any]] = None,
        **root: Any,
    ) -> Settings:
        return Settings(
            aws=AwsSettings(),
            notify=NotifySettings(
                **{
                    "NOTIFY_API_URL": "",
                    "NOTIFY_SERVICE_ID": None,
                    "NOTIFY_API_SECRET": None,
                    **(notify or {}),
                }
            ),
            push=PushSettings(
                **{"PUSH_API_URL": "", "PUSH_API_TOKEN": None, **(push or {})}
            ),
            dispatch=DispatchSettings(**(dispatch or {})),
            idempotency=IdempotencySettings(
                **{"IDEMPOTENCY_BACKEND": "memory", **(idempotency or {})}
            ),
            retry=RetrySettings(**(retry or {})),
            **root,
        )

    return _factory


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def notification_request_factory():
    return make_notification_request


@pytest.fixture
def job_factory():
    return make_job


@pytest.fixture
def channel_adapter_factory():
    return make_channel_adapter
