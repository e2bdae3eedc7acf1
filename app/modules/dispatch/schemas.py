"""API request and response schemas for the dispatch endpoints.

Key distinction from domain/models.py:
  - schemas.py: API contracts with full Pydantic validation
  - domain/models.py: internal lifecycle structures

Responses never carry adapter error text; failures are reported through
``error_code`` only.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from infrastructure.notifications import Channel
from modules.dispatch.domain import (
    DeadLetterEntry,
    DeliveryStatusRecord,
    NotificationRequest,
    Priority,
    SubmissionResult,
)


class SubmitNotificationRequest(BaseModel):
    """Body of ``POST /notifications``.

    The idempotency key may be sent here or in the ``Idempotency-Key``
    header; the header wins when both are present.
    """

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "recipient_id": "user-123",
                "channel": "email",
                "priority": "high",
                "template": "password-reset",
                "payload": {
                    "email_address": "user@example.com",
                    "subject": "Reset your password",
                    "body": "Use the link below.",
                },
            }
        },
    )

    idempotency_key: Optional[str] = Field(None, max_length=255)
    recipient_id: str = Field(..., min_length=1, max_length=255)
    channel: Channel
    priority: Priority = Priority.LOW
    template: str = Field("", max_length=255)
    payload: Dict[str, Any] = Field(default_factory=dict)

    def to_domain(self, idempotency_key: Optional[str] = None) -> NotificationRequest:
        return NotificationRequest(
            idempotency_key=idempotency_key or self.idempotency_key,
            recipient_id=self.recipient_id,
            channel=self.channel,
            priority=self.priority,
            template=self.template,
            payload=self.payload,
        )


class SubmissionResponse(BaseModel):
    job_id: str
    status: str
    replayed: bool = False
    receipt: Optional[Dict[str, Any]] = None
    error_code: Optional[str] = None

    @classmethod
    def from_result(cls, result: SubmissionResult) -> "SubmissionResponse":
        return cls(
            job_id=result.job_id,
            status=result.status,
            replayed=result.replayed,
            receipt=result.receipt,
            error_code=result.error_code,
        )


class AttemptResponse(BaseModel):
    attempt_number: int
    outcome: str
    timestamp: datetime
    error_code: Optional[str] = None
    duration_seconds: Optional[float] = None
    provider_message_id: Optional[str] = None


class JobStatusResponse(BaseModel):
    """Serialized view of a DeliveryStatusRecord."""

    job_id: str
    channel: Channel
    priority: Priority
    status: str
    attempt_count: int
    attempt_history: List[AttemptResponse] = Field(default_factory=list)
    last_error_code: Optional[str] = None
    next_eligible_at: Optional[datetime] = None
    receipt: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: DeliveryStatusRecord) -> "JobStatusResponse":
        return cls(
            job_id=record.job_id,
            channel=record.channel,
            priority=record.priority,
            status=record.status.value,
            attempt_count=record.attempt_count,
            attempt_history=[
                AttemptResponse(
                    attempt_number=a.attempt_number,
                    outcome=a.outcome.value,
                    timestamp=a.timestamp,
                    error_code=a.error_code,
                    duration_seconds=a.duration_seconds,
                    provider_message_id=a.provider_message_id,
                )
                for a in record.attempt_history
            ],
            last_error_code=record.last_error_code,
            next_eligible_at=record.next_eligible_at,
            receipt=record.receipt,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class DeadLetterResponse(BaseModel):
    """Operator view of a dead-lettered job."""

    job_id: str
    caller_id: str
    idempotency_key: str
    channel: Channel
    priority: Priority
    template: str
    attempt_count: int
    error_code: str
    reason: str
    dead_lettered_at: datetime

    @classmethod
    def from_entry(cls, entry: DeadLetterEntry) -> "DeadLetterResponse":
        return cls(
            job_id=entry.job_id,
            caller_id=entry.job.caller_id,
            idempotency_key=entry.job.idempotency_key,
            channel=entry.job.channel,
            priority=entry.job.priority,
            template=entry.job.request.template,
            attempt_count=len(entry.attempt_history),
            error_code=entry.error_code,
            reason=entry.reason.value,
            dead_lettered_at=entry.dead_lettered_at,
        )


class DeadLetterListResponse(BaseModel):
    total: int
    entries: List[DeadLetterResponse]


class ErrorResponse(BaseModel):
    error_code: str
    message: str
