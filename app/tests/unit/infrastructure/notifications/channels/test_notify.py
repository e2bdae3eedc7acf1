"""Unit tests for the GC Notify email and SMS channels."""

from unittest.mock import patch

import pytest
import requests

from infrastructure.notifications import (
    Channel,
    DeliveryTimeout,
    ProviderPermanent,
    ProviderTransient,
    Unauthenticated,
)
from infrastructure.notifications.channels import EmailChannel, SMSChannel
from infrastructure.notifications.channels.notify import SMS_MAX_LENGTH
from infrastructure.operations import OperationStatus
from integrations.notify import NotifyCredentialsError

POST = "infrastructure.notifications.channels.notify.post_notification"


@pytest.mark.unit
class TestEmailChannel:
    """Tests for EmailChannel."""

    @pytest.fixture
    def email_channel(self, notify_settings):
        return EmailChannel(
            notify_settings, default_template_id="email-template", timeout_seconds=15
        )

    def test_channel_name(self, email_channel):
        """Channel name returns 'email'."""
        assert email_channel.channel_name == "email"

    @patch(POST)
    def test_send_success(
        self, mock_post, email_channel, resolved_notification_factory, http_response_factory
    ):
        """Successful send returns a receipt with the provider id."""
        mock_post.return_value = http_response_factory(201, {"id": "notify-123"})
        notification = resolved_notification_factory(job_id="job-9", template="")

        receipt = email_channel.send(notification)

        assert receipt.channel == Channel.EMAIL
        assert receipt.provider_message_id == "notify-123"
        url, payload = mock_post.call_args.args
        assert url == "https://api.notify.example/v2/notifications/email"
        assert payload["email_address"] == "user@example.com"
        assert payload["template_id"] == "email-template"
        assert payload["reference"] == "job-9"
        assert payload["personalisation"]["subject"] == "Test subject"
        assert mock_post.call_args.kwargs["timeout"] == 15

    @patch(POST)
    def test_template_name_mapped_to_notify_id(
        self, mock_post, email_channel, resolved_notification_factory, http_response_factory
    ):
        mock_post.return_value = http_response_factory(201, {"id": "n"})

        email_channel.send(resolved_notification_factory(template="invoice"))

        payload = mock_post.call_args.args[1]
        assert payload["template_id"] == "0b6a7f1e-3c2d-4e5f-8a9b-1c2d3e4f5a6b"
        assert "template" not in payload["personalisation"]

    @patch(POST)
    def test_template_uuid_sent_as_is(
        self, mock_post, email_channel, resolved_notification_factory, http_response_factory
    ):
        mock_post.return_value = http_response_factory(201, {"id": "n"})
        template_id = "6f1c2b3a-4d5e-4f60-9a1b-2c3d4e5f6a7b"

        email_channel.send(resolved_notification_factory(template=template_id))

        assert mock_post.call_args.args[1]["template_id"] == template_id

    @patch(POST)
    def test_unknown_template_name_uses_default(
        self, mock_post, email_channel, resolved_notification_factory, http_response_factory
    ):
        """An unmapped name never reaches GC Notify as a template id."""
        mock_post.return_value = http_response_factory(201, {"id": "n"})

        email_channel.send(resolved_notification_factory(template="welcome"))

        payload = mock_post.call_args.args[1]
        assert payload["template_id"] == "email-template"
        assert payload["personalisation"]["template"] == "welcome"

    def test_invalid_email_is_permanent(self, email_channel, resolved_notification_factory):
        """A malformed address never reaches the provider."""
        with pytest.raises(ProviderPermanent) as exc_info:
            email_channel.send(resolved_notification_factory(recipient_address="not-an-email"))

        assert exc_info.value.error_code == "INVALID_RECIPIENT"

    def test_missing_template_is_permanent(self, notify_settings, resolved_notification_factory):
        channel = EmailChannel(notify_settings, default_template_id="")

        with pytest.raises(ProviderPermanent) as exc_info:
            channel.send(resolved_notification_factory(template=""))

        assert exc_info.value.error_code == "MISSING_TEMPLATE"

    @patch(POST)
    def test_server_error_is_transient(
        self, mock_post, email_channel, resolved_notification_factory, http_response_factory
    ):
        mock_post.return_value = http_response_factory(503, {})

        with pytest.raises(ProviderTransient):
            email_channel.send(resolved_notification_factory())

    @patch(POST)
    def test_rate_limit_carries_retry_after(
        self, mock_post, email_channel, resolved_notification_factory, http_response_factory
    ):
        mock_post.return_value = http_response_factory(429, {}, {"Retry-After": "12"})

        with pytest.raises(ProviderTransient) as exc_info:
            email_channel.send(resolved_notification_factory())

        assert exc_info.value.retry_after == 12

    @patch(POST)
    def test_bad_request_is_permanent(
        self, mock_post, email_channel, resolved_notification_factory, http_response_factory
    ):
        mock_post.return_value = http_response_factory(
            400, {"errors": [{"error": "BadRequestError", "message": "Bad template"}]}
        )

        with pytest.raises(ProviderPermanent) as exc_info:
            email_channel.send(resolved_notification_factory())

        assert exc_info.value.error_code == "HTTP_400"
        assert exc_info.value.retryable is False

    @patch(POST)
    def test_forbidden_is_unauthenticated(
        self, mock_post, email_channel, resolved_notification_factory, http_response_factory
    ):
        mock_post.return_value = http_response_factory(403, {})

        with pytest.raises(Unauthenticated):
            email_channel.send(resolved_notification_factory())

    @patch(POST)
    def test_request_timeout_is_delivery_timeout(
        self, mock_post, email_channel, resolved_notification_factory
    ):
        mock_post.side_effect = requests.Timeout("read timed out")

        with pytest.raises(DeliveryTimeout):
            email_channel.send(resolved_notification_factory())

    @patch(POST)
    def test_missing_credentials(self, mock_post, email_channel, resolved_notification_factory):
        mock_post.side_effect = NotifyCredentialsError("NOTIFY_API_SECRET is missing")

        with pytest.raises(Unauthenticated) as exc_info:
            email_channel.send(resolved_notification_factory())

        assert exc_info.value.error_code == "MISSING_CREDENTIALS"

    def test_health_check_success(self, email_channel):
        result = email_channel.health_check()

        assert result.is_success

    def test_health_check_missing_secret(self, notify_settings):
        notify_settings.NOTIFY_API_SECRET = None
        channel = EmailChannel(notify_settings, default_template_id="t")

        result = channel.health_check()

        assert result.status == OperationStatus.UNAUTHORIZED


@pytest.mark.unit
class TestSMSChannel:
    """Tests for SMSChannel."""

    @pytest.fixture
    def sms_channel(self, notify_settings):
        return SMSChannel(notify_settings, default_template_id="sms-template")

    def test_channel_name(self, sms_channel):
        assert sms_channel.channel_name == "sms"

    @patch(POST)
    def test_send_success(
        self, mock_post, sms_channel, resolved_notification_factory, http_response_factory
    ):
        """SMS payload uses phone_number and drops the subject."""
        mock_post.return_value = http_response_factory(201, {"id": "sms-1"})

        receipt = sms_channel.send(
            resolved_notification_factory(
                channel=Channel.SMS, recipient_address="+15555551234", template=""
            )
        )

        assert receipt.provider_message_id == "sms-1"
        url, payload = mock_post.call_args.args
        assert url.endswith("/v2/notifications/sms")
        assert payload["phone_number"] == "+15555551234"
        assert "subject" not in payload["personalisation"]

    @pytest.mark.parametrize("phone", ["5555551234", "+1555abc", "+1234567890123456"])
    def test_invalid_phone_is_permanent(self, sms_channel, resolved_notification_factory, phone):
        """Phone numbers must be E.164."""
        with pytest.raises(ProviderPermanent):
            sms_channel.send(
                resolved_notification_factory(channel=Channel.SMS, recipient_address=phone)
            )

    @patch(POST)
    def test_long_body_truncated(
        self, mock_post, sms_channel, resolved_notification_factory, http_response_factory
    ):
        mock_post.return_value = http_response_factory(201, {"id": "sms-1"})

        sms_channel.send(
            resolved_notification_factory(
                channel=Channel.SMS, recipient_address="+15555551234", body="x" * 2000
            )
        )

        body = mock_post.call_args.args[1]["personalisation"]["body"]
        assert len(body) == SMS_MAX_LENGTH
        assert body.endswith("...")
