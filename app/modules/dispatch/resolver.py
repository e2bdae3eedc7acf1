"""Turn a queued request into a channel-ready notification.

Rendering and recipient lookup happen upstream; the resolver only picks the
address and content out of the request payload.
"""

from typing import Any, Dict, Protocol

from infrastructure.notifications import Channel, ProviderPermanent, ResolvedNotification
from modules.dispatch.domain import Job

ADDRESS_KEYS = {
    Channel.EMAIL: "email_address",
    Channel.SMS: "phone_number",
    Channel.PUSH: "device_token",
}

# Payload keys consumed by the resolver rather than passed as template data
RESERVED_KEYS = frozenset(
    {"email_address", "phone_number", "device_token", "body", "message", "subject", "reference"}
)


class NotificationResolver(Protocol):
    def resolve(self, job: Job) -> ResolvedNotification: ...


class PayloadResolver:
    """Resolve notifications from the request payload.

    Address: the channel's address key in the payload (``email_address``,
    ``phone_number`` or ``device_token``), otherwise ``recipient_id``.
    Template data: the payload's ``personalisation`` mapping when present,
    otherwise every non-reserved payload key.
    """

    def resolve(self, job: Job) -> ResolvedNotification:
        request = job.request
        payload: Dict[str, Any] = request.payload

        address = payload.get(ADDRESS_KEYS[request.channel]) or request.recipient_id
        if not isinstance(address, str) or not address.strip():
            raise ProviderPermanent(
                "No recipient address for notification",
                error_code="INVALID_RECIPIENT",
            )

        personalisation = payload.get("personalisation")
        if not isinstance(personalisation, dict):
            personalisation = {
                k: v for k, v in payload.items() if k not in RESERVED_KEYS
            }

        body = payload.get("body", payload.get("message", ""))
        subject = payload.get("subject")

        return ResolvedNotification(
            job_id=job.job_id,
            channel=request.channel,
            recipient_address=address,
            body=str(body) if body is not None else "",
            subject=str(subject) if subject is not None else None,
            template=request.template,
            personalisation=personalisation,
            reference=payload.get("reference"),
        )
