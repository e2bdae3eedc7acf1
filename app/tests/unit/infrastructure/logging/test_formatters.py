"""Unit tests for structlog processors."""

import threading

import pytest

from infrastructure.logging import (
    add_service_info,
    add_thread_name,
    mask_sensitive_data,
    truncate_large_values,
)

pytestmark = pytest.mark.unit


class TestAddServiceInfo:
    def test_adds_name_and_version(self):
        """Processor stamps service name and version on every event."""
        processor = add_service_info("notification-dispatch", "abc123")

        result = processor(None, "info", {"event": "started"})

        assert result["service"] == "notification-dispatch"
        assert result["version"] == "abc123"


def test_add_thread_name():
    result = add_thread_name(None, "info", {"event": "x"})

    assert result["thread"] == threading.current_thread().name


class TestMaskSensitiveData:
    def test_masks_credentials(self):
        """Token and secret values are redacted."""
        processor = mask_sensitive_data()

        result = processor(
            None,
            "info",
            {"event": "x", "PUSH_API_TOKEN": "abc", "notify_api_secret": "s"},
        )

        assert result["PUSH_API_TOKEN"] == "***REDACTED***"
        assert result["notify_api_secret"] == "***REDACTED***"

    def test_masks_recipient_addresses(self):
        """Email addresses, phone numbers and device tokens are redacted."""
        processor = mask_sensitive_data()

        result = processor(
            None,
            "info",
            {
                "email_address": "user@example.com",
                "phone_number": "+15555551234",
                "device_token": "tok",
            },
        )

        assert set(result.values()) == {"***REDACTED***"}

    def test_leaves_other_fields(self):
        """Non-sensitive fields and None values are untouched."""
        processor = mask_sensitive_data()

        result = processor(None, "info", {"job_id": "j1", "token": None})

        assert result == {"job_id": "j1", "token": None}

    def test_additional_patterns(self):
        """Extra patterns extend the defaults."""
        processor = mask_sensitive_data(additional_patterns=frozenset({"recipient"}))

        result = processor(None, "info", {"recipient_id": "user-1"})

        assert result["recipient_id"] == "***REDACTED***"

    def test_masks_nested_payloads(self):
        """Addresses inside payload mappings and lists are redacted."""
        processor = mask_sensitive_data()

        result = processor(
            None,
            "info",
            {
                "payload": {"email_address": "user@example.com", "subject": "Hi"},
                "recipients": [{"phone_number": "+15555551234"}],
            },
        )

        assert result["payload"] == {"email_address": "***REDACTED***", "subject": "Hi"}
        assert result["recipients"] == [{"phone_number": "***REDACTED***"}]


class TestTruncateLargeValues:
    def test_truncates_long_strings(self):
        """Strings over the limit are cut and annotated."""
        processor = truncate_large_values(max_length=10)

        result = processor(None, "info", {"error": "x" * 25})

        assert result["error"].startswith("x" * 10)
        assert "25 chars total" in result["error"]

    def test_keeps_short_strings(self):
        processor = truncate_large_values(max_length=10)

        assert processor(None, "info", {"error": "short"}) == {"error": "short"}
