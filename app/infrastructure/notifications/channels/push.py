"""Push channel implementation using an HTTP push gateway."""

from typing import TYPE_CHECKING

import requests

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
    classify_http_response,
    classify_request_exception,
)

if TYPE_CHECKING:
    from infrastructure.configuration.integrations import PushSettings

logger = get_module_logger()

MAX_DEVICE_TOKEN_LENGTH = 4096


class PushChannel(ChannelAdapter):
    """Push notification channel.

    Posts ``{device_token, title, body, data, reference}`` to
    ``{PUSH_API_URL}/v1/push`` with a bearer token. Any 2xx response counts
    as accepted; the gateway's ``id`` (or ``message_id``) becomes the
    provider message id.
    """

    def __init__(self, push_settings: "PushSettings", timeout_seconds: float = 30):
        self._api_url = push_settings.PUSH_API_URL.rstrip("/")
        self._token = push_settings.PUSH_API_TOKEN
        self._timeout_seconds = timeout_seconds
        self._session = requests.Session()
        logger.info("initialized_push_channel", api_url=self._api_url)

    @property
    def channel_name(self) -> str:
        return "push"

    def send(self, notification: ResolvedNotification) -> DeliveryReceipt:
        if not self._token:
            raise Unauthenticated(
                "PUSH_API_TOKEN is missing", error_code="MISSING_CREDENTIALS"
            )

        device_token = notification.recipient_address
        if len(device_token) > MAX_DEVICE_TOKEN_LENGTH or any(
            c.isspace() for c in device_token
        ):
            raise ProviderPermanent(
                "Device token is malformed", error_code="INVALID_RECIPIENT"
            )

        payload = {
            "device_token": device_token,
            "title": notification.subject or "",
            "body": notification.body,
            "data": dict(notification.personalisation),
            "reference": notification.provider_reference,
        }
        headers = {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
        }

        try:
            response = self._session.post(
                f"{self._api_url}/v1/push",
                json=payload,
                headers=headers,
                timeout=self._timeout_seconds,
            )
        except requests.RequestException as e:
            result = classify_request_exception(e, provider="push gateway")
            logger.warning(
                "push_request_failed",
                job_id=notification.job_id,
                error=result.message,
            )
            raise delivery_error_from_result(result) from e

        result = classify_http_response(response, provider="push gateway")
        if not result.is_success:
            logger.warning(
                "push_send_rejected",
                job_id=notification.job_id,
                status_code=response.status_code,
                error_code=result.error_code,
            )
            raise delivery_error_from_result(result)

        data = result.data if isinstance(result.data, dict) else {}
        message_id = data.get("id") or data.get("message_id")
        logger.info(
            "push_send_accepted",
            job_id=notification.job_id,
            provider_message_id=message_id,
        )
        return DeliveryReceipt(
            channel=Channel.PUSH,
            provider_message_id=message_id,
            provider_response=data or None,
        )

    def health_check(self) -> OperationResult:
        if not self._api_url or not self._token:
            return OperationResult.permanent_error(
                message="Push gateway is not configured",
                error_code="NOT_CONFIGURED",
            )
        return OperationResult.success(
            message="Push gateway configured",
            data={"api_url": self._api_url},
        )
