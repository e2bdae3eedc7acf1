"""Unit tests for the settings aggregator and section validation."""

import pytest
from pydantic import ValidationError

from infrastructure.configuration import (
    DispatchSettings,
    IdempotencySettings,
    RetrySettings,
    Settings,
)
from infrastructure.configuration.integrations import NotifySettings, PushSettings

pytestmark = pytest.mark.unit


class TestDispatchSettings:
    """Tests for DispatchSettings."""

    def test_defaults(self):
        """Defaults match the documented values."""
        settings = DispatchSettings()

        assert settings.worker_count == 4
        assert settings.queue_capacity_high == 1000
        assert settings.queue_capacity_low == 5000
        assert settings.lease_seconds == 300
        assert settings.max_payload_bytes == 16384

    def test_reads_environment(self, monkeypatch):
        """Values are loaded from DISPATCH_* environment variables."""
        monkeypatch.setenv("DISPATCH_WORKER_COUNT", "8")
        monkeypatch.setenv("DISPATCH_SMS_TIMEOUT_SECONDS", "5")

        settings = DispatchSettings()

        assert settings.worker_count == 8
        assert settings.sms_timeout_seconds == 5

    def test_timeout_for_channel(self):
        """timeout_for returns the per-channel adapter timeout."""
        settings = DispatchSettings(
            DISPATCH_EMAIL_TIMEOUT_SECONDS=20,
            DISPATCH_SMS_TIMEOUT_SECONDS=7,
            DISPATCH_PUSH_TIMEOUT_SECONDS=12,
        )

        assert settings.timeout_for("email") == 20
        assert settings.timeout_for("sms") == 7
        assert settings.timeout_for("push") == 12

    def test_lease_must_exceed_adapter_timeouts(self):
        """A lease shorter than an adapter timeout is rejected."""
        with pytest.raises(ValidationError):
            DispatchSettings(DISPATCH_LEASE_SECONDS=10, DISPATCH_EMAIL_TIMEOUT_SECONDS=30)

    def test_worker_count_must_be_positive(self):
        """Zero workers is rejected."""
        with pytest.raises(ValidationError):
            DispatchSettings(DISPATCH_WORKER_COUNT=0)


class TestRetrySettings:
    """Tests for RetrySettings."""

    def test_defaults(self):
        """Default retry policy is 3 attempts, 5s base, 300s cap."""
        settings = RetrySettings()

        assert settings.max_attempts == 3
        assert settings.base_delay_seconds == 5
        assert settings.max_delay_seconds == 300
        assert settings.jitter_ratio == 0.2

    def test_zero_base_delay_allowed(self):
        """A zero base delay makes retries immediately eligible."""
        settings = RetrySettings(RETRY_BASE_DELAY_SECONDS=0)

        assert settings.base_delay_seconds == 0

    @pytest.mark.parametrize(
        "overrides",
        [
            {"RETRY_MAX_ATTEMPTS": 0},
            {"RETRY_JITTER_RATIO": 1.0},
            {"RETRY_JITTER_RATIO": -0.1},
            {"RETRY_BASE_DELAY_SECONDS": -1},
            {"RETRY_BASE_DELAY_SECONDS": 10, "RETRY_MAX_DELAY_SECONDS": 5},
        ],
    )
    def test_invalid_values_rejected(self, overrides):
        """Invalid retry settings fail validation."""
        with pytest.raises(ValidationError):
            RetrySettings(**overrides)


class TestIdempotencySettings:
    """Tests for IdempotencySettings."""

    def test_defaults(self):
        """Default TTL is 24 hours with the in-memory backend."""
        settings = IdempotencySettings()

        assert settings.IDEMPOTENCY_TTL_SECONDS == 86400
        assert settings.IDEMPOTENCY_BACKEND == "memory"

    def test_unknown_backend_rejected(self):
        """Only memory and dynamodb backends are accepted."""
        with pytest.raises(ValidationError):
            IdempotencySettings(IDEMPOTENCY_BACKEND="redis")


class TestIntegrationSettings:
    """Tests for channel provider settings."""

    def test_notify_configured_requires_all_credentials(self):
        """GC Notify is configured only with URL, service id and secret."""
        partial = NotifySettings(
            NOTIFY_API_URL="https://api.notify.example", NOTIFY_SERVICE_ID="svc"
        )
        full = NotifySettings(
            NOTIFY_API_URL="https://api.notify.example",
            NOTIFY_SERVICE_ID="svc",
            NOTIFY_API_SECRET="secret",
        )

        assert partial.is_configured is False
        assert full.is_configured is True

    def test_push_configured(self):
        """Push requires URL and token."""
        assert PushSettings(PUSH_API_URL="", PUSH_API_TOKEN=None).is_configured is False
        assert (
            PushSettings(
                PUSH_API_URL="https://push.example", PUSH_API_TOKEN="t"
            ).is_configured
            is True
        )


class TestSettings:
    """Tests for the Settings aggregator."""

    def test_sections_instantiated(self):
        """Every section is built when not passed explicitly."""
        settings = Settings()

        assert isinstance(settings.dispatch, DispatchSettings)
        assert isinstance(settings.retry, RetrySettings)
        assert isinstance(settings.idempotency, IdempotencySettings)

    def test_explicit_section_used(self):
        """An explicit section overrides the environment."""
        dispatch = DispatchSettings(DISPATCH_WORKER_COUNT=2)

        settings = Settings(dispatch=dispatch)

        assert settings.dispatch.worker_count == 2

    def test_is_production(self, settings_factory):
        """Production means an empty PREFIX."""
        assert settings_factory(PREFIX="").is_production is True
        assert settings_factory(PREFIX="dev-").is_production is False

    def test_summary_has_no_secrets(self, settings_factory):
        """The startup summary reports provider presence, never credentials."""
        settings = settings_factory(
            notify={
                "NOTIFY_API_URL": "https://notify.example",
                "NOTIFY_SERVICE_ID": "svc",
                "NOTIFY_API_SECRET": "very-secret",
            },
            dispatch={"DISPATCH_WORKER_COUNT": 2},
        )

        summary = settings.summary()

        assert summary["workers"] == 2
        assert summary["providers"] == {"notify": True, "push": False}
        assert "very-secret" not in repr(summary)
