"""GC Notify channel adapters (email and SMS).

GC Notify identifies templates by UUID. A request's template name is looked
up in NOTIFY_TEMPLATE_IDS; a name that is already a UUID is sent as is, and
any other name falls back to the channel default template with the name
passed in personalisation as ``template``.
"""

import uuid
from typing import Any, Dict, Optional, TYPE_CHECKING

import requests
from pydantic import EmailStr, TypeAdapter, ValidationError

from infrastructure.logging import get_module_logger
from infrastructure.notifications.channels.base import ChannelAdapter
from infrastructure.notifications.errors import (
    ProviderPermanent,
    Unauthenticated,
    delivery_error_from_result,
)
from infrastructure.notifications.models import (
    Channel,
    DeliveryReceipt,
    ResolvedNotification,
)
from infrastructure.operations import (
    OperationResult,
    OperationStatus,
    classify_http_response,
    classify_request_exception,
)
from integrations.notify.client import (
    NotifyCredentialsError,
    auth_headers,
    post_notification,
)

if TYPE_CHECKING:
    from infrastructure.configuration.integrations import NotifySettings

logger = get_module_logger()

SMS_MAX_LENGTH = 1600  # GC Notify SMS limit

_email_adapter = TypeAdapter(EmailStr)


class NotifyChannel(ChannelAdapter):
    """Shared GC Notify plumbing: auth, POST and response classification."""

    endpoint = ""
    address_field = ""

    def __init__(
        self,
        notify_settings: "NotifySettings",
        default_template_id: str = "",
        timeout_seconds: float = 30,
    ):
        self._api_url = notify_settings.NOTIFY_API_URL.rstrip("/")
        self._service_id = notify_settings.NOTIFY_SERVICE_ID
        self._secret = notify_settings.NOTIFY_API_SECRET
        self._default_template_id = default_template_id
        self._template_ids = dict(notify_settings.NOTIFY_TEMPLATE_IDS)
        self._timeout_seconds = timeout_seconds
        logger.info(
            "initialized_notify_channel",
            channel=self.channel_name,
            backend="gc_notify",
        )

    def validate_address(self, address: str) -> str:
        return address

    def resolve_template_id(self, template: Optional[str]) -> Optional[str]:
        if template:
            if template in self._template_ids:
                return self._template_ids[template]
            try:
                return str(uuid.UUID(template))
            except ValueError:
                pass
        return self._default_template_id or None

    def build_personalisation(
        self, notification: ResolvedNotification
    ) -> Dict[str, Any]:
        personalisation = dict(notification.personalisation)
        personalisation.setdefault("body", notification.body)
        if notification.subject is not None:
            personalisation.setdefault("subject", notification.subject)
        return personalisation

    def send(self, notification: ResolvedNotification) -> DeliveryReceipt:
        address = self.validate_address(notification.recipient_address)
        template_id = self.resolve_template_id(notification.template)
        if not template_id:
            raise ProviderPermanent(
                f"No GC Notify template for '{notification.template}'",
                error_code="MISSING_TEMPLATE",
            )

        personalisation = self.build_personalisation(notification)
        if notification.template and template_id == self._default_template_id:
            personalisation.setdefault("template", notification.template)

        payload = {
            self.address_field: address,
            "template_id": template_id,
            "personalisation": personalisation,
            "reference": notification.provider_reference,
        }
        url = f"{self._api_url}{self.endpoint}"

        try:
            response = post_notification(
                url,
                payload,
                service_id=self._service_id,
                secret=self._secret,
                timeout=self._timeout_seconds,
            )
        except NotifyCredentialsError as e:
            # No attempt can succeed until reconfigured
            raise Unauthenticated(str(e), error_code="MISSING_CREDENTIALS") from e
        except requests.RequestException as e:
            result = classify_request_exception(e, provider="GC Notify")
            logger.warning(
                "notify_request_failed",
                channel=self.channel_name,
                job_id=notification.job_id,
                error=result.message,
            )
            raise delivery_error_from_result(result) from e

        result = classify_http_response(response, provider="GC Notify")
        if not result.is_success:
            logger.warning(
                "notify_send_rejected",
                channel=self.channel_name,
                job_id=notification.job_id,
                status_code=response.status_code,
                error_code=result.error_code,
            )
            raise delivery_error_from_result(result)

        data = result.data if isinstance(result.data, dict) else {}
        logger.info(
            "notify_send_accepted",
            channel=self.channel_name,
            job_id=notification.job_id,
            provider_message_id=data.get("id"),
        )
        return DeliveryReceipt(
            channel=Channel(self.channel_name),
            provider_message_id=data.get("id"),
            provider_response=data or None,
        )

    def health_check(self) -> OperationResult:
        """Check GC Notify configuration (URL and signing credentials)."""
        if not self._api_url:
            return OperationResult.permanent_error(
                message="NOTIFY_API_URL is not configured",
                error_code="NOT_CONFIGURED",
            )
        try:
            auth_headers(self._service_id, self._secret)
        except NotifyCredentialsError as e:
            return OperationResult.error(
                status=OperationStatus.UNAUTHORIZED,
                message=f"GC Notify credentials invalid: {e}",
                error_code="MISSING_CREDENTIALS",
            )
        return OperationResult.success(
            message="GC Notify API credentials valid",
            data={"api_url": self._api_url},
        )


class EmailChannel(NotifyChannel):
    """Email channel using GC Notify ``/v2/notifications/email``."""

    endpoint = "/v2/notifications/email"
    address_field = "email_address"

    @property
    def channel_name(self) -> str:
        return "email"

    def validate_address(self, address: str) -> str:
        try:
            return str(_email_adapter.validate_python(address))
        except ValidationError as e:
            raise ProviderPermanent(
                "Recipient email address is invalid", error_code="INVALID_RECIPIENT"
            ) from e


class SMSChannel(NotifyChannel):
    """SMS channel using GC Notify ``/v2/notifications/sms``.

    Requires phone numbers in E.164 format (+1234567890).
    """

    endpoint = "/v2/notifications/sms"
    address_field = "phone_number"

    @property
    def channel_name(self) -> str:
        return "sms"

    def validate_address(self, address: str) -> str:
        phone = address.strip()
        if not phone.startswith("+"):
            raise ProviderPermanent(
                "Phone number must be in E.164 format (+1234567890)",
                error_code="INVALID_RECIPIENT",
            )
        digits = phone[1:]
        if not digits.isdigit() or len(digits) > 15:
            raise ProviderPermanent(
                "Phone number must have 1-15 digits after +",
                error_code="INVALID_RECIPIENT",
            )
        return phone

    def build_personalisation(
        self, notification: ResolvedNotification
    ) -> Dict[str, Any]:
        personalisation = super().build_personalisation(notification)
        personalisation.pop("subject", None)
        body: Optional[str] = personalisation.get("body")
        if body and len(body) > SMS_MAX_LENGTH:
            logger.warning(
                "sms_message_truncated",
                job_id=notification.job_id,
                original_length=len(body),
            )
            personalisation["body"] = body[: SMS_MAX_LENGTH - 3] + "..."
        return personalisation
