"""Notification delivery models.

Channel-facing models exchanged between the dispatch worker pool and the
channel adapters. Rendering happens upstream; adapters receive a fully
resolved notification and return an acknowledgement receipt.

Uses Pydantic BaseModel for runtime validation and serialization into the
status ledger and idempotency responses.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Channel(str, Enum):
    """Delivery channels supported by the dispatcher."""

    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"


class ResolvedNotification(BaseModel):
    """A notification ready for a single channel send.

    Attributes:
        job_id: Dispatch job identifier, passed to providers as reference
        channel: Target channel
        recipient_address: Email address, E.164 phone number or device token
        body: Rendered message body
        subject: Subject line (email), title (push), ignored (SMS)
        template: Template identifier from the request
        personalisation: Template variables for providers that render
        reference: Provider-side reference (defaults to job_id)

    Example:
        notification = ResolvedNotification(
            job_id="3f2a...",
            channel=Channel.EMAIL,
            recipient_address="user@example.com",
            subject="Welcome",
            body="Hello!",
            template="welcome",
        )
    """

    model_config = ConfigDict(frozen=True)

    job_id: str
    channel: Channel
    recipient_address: str
    body: str = ""
    subject: Optional[str] = None
    template: str = ""
    personalisation: Dict[str, Any] = Field(default_factory=dict)
    reference: Optional[str] = None

    @field_validator("recipient_address")
    @classmethod
    def validate_recipient_address(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("recipient_address cannot be empty")
        return v.strip()

    @property
    def provider_reference(self) -> str:
        return self.reference or self.job_id


class DeliveryReceipt(BaseModel):
    """Adapter-level acknowledgement of a send.

    Attributes:
        channel: Channel that accepted the notification
        provider_message_id: Identifier assigned by the provider
        accepted_at: When the provider acknowledged the send
        provider_response: Optional raw provider response (debugging)
    """

    channel: Channel
    provider_message_id: Optional[str] = None
    accepted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    provider_response: Optional[Dict[str, Any]] = None
