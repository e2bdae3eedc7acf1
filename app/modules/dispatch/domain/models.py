"""Dispatch domain models.

Key distinctions:
  - NotificationRequest: immutable, validated submission (Pydantic)
  - Job, DeliveryStatusRecord, AttemptRecord, DeadLetterEntry: internal
    lifecycle structures (dataclasses, no runtime validation)
  - schemas.py: API contracts with Pydantic

Relationships:
  one NotificationRequest -> one idempotency record -> at most one Job
  -> one DeliveryStatusRecord -> zero or one DeadLetterEntry
"""

import uuid
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from infrastructure.notifications.models import Channel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Priority(str, Enum):
    """Queue selection. High is always drained before low."""

    HIGH = "high"
    LOW = "low"


class DeliveryStatus(str, Enum):
    """Lifecycle of a dispatch job."""

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    DELIVERED = "delivered"
    FAILED_RETRYABLE = "failed_retryable"
    FAILED_PERMANENT = "failed_permanent"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES: FrozenSet[DeliveryStatus] = frozenset(
    {
        DeliveryStatus.DELIVERED,
        DeliveryStatus.FAILED_PERMANENT,
        DeliveryStatus.CANCELLED,
    }
)

# in_progress -> queued only happens when an expired lease is reaped
ALLOWED_TRANSITIONS: Mapping[DeliveryStatus, FrozenSet[DeliveryStatus]] = {
    DeliveryStatus.QUEUED: frozenset(
        {DeliveryStatus.IN_PROGRESS, DeliveryStatus.CANCELLED}
    ),
    DeliveryStatus.IN_PROGRESS: frozenset(
        {
            DeliveryStatus.DELIVERED,
            DeliveryStatus.FAILED_RETRYABLE,
            DeliveryStatus.FAILED_PERMANENT,
            DeliveryStatus.QUEUED,
        }
    ),
    DeliveryStatus.FAILED_RETRYABLE: frozenset(
        {DeliveryStatus.IN_PROGRESS, DeliveryStatus.CANCELLED}
    ),
    DeliveryStatus.DELIVERED: frozenset(),
    DeliveryStatus.FAILED_PERMANENT: frozenset(),
    DeliveryStatus.CANCELLED: frozenset(),
}


def can_transition(current: DeliveryStatus, target: DeliveryStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


class DeadLetterReason(str, Enum):
    PERMANENT_ERROR = "permanent_error"
    MAX_ATTEMPTS_EXCEEDED = "max_attempts_exceeded"


class NotificationRequest(BaseModel):
    """An immutable request to deliver one notification.

    The idempotency key is checked by the submission gateway rather than
    here, so a missing key is reported as its own caller error.

    Attributes:
        idempotency_key: Caller-chosen deduplication key
        recipient_id: Recipient identifier (resolved to an address upstream)
        channel: email, sms or push
        priority: high or low
        template: Template identifier
        payload: Opaque, JSON-serializable template data
        submitted_at: Submission time (UTC)
    """

    model_config = ConfigDict(frozen=True)

    idempotency_key: Optional[str] = None
    recipient_id: str = Field(..., min_length=1)
    channel: Channel
    priority: Priority = Priority.LOW
    template: str = ""
    payload: Dict[str, Any] = Field(default_factory=dict)
    submitted_at: datetime = Field(default_factory=utcnow)

    def fingerprint_body(self) -> Dict[str, Any]:
        """Fields that define "the same request" for idempotency."""
        return self.model_dump(
            mode="json", exclude={"idempotency_key", "submitted_at"}
        )


@dataclass
class Job:
    """A unit of work: one request, one channel, one recipient.

    ``job_id`` is generated here and is distinct from the idempotency key.
    """

    caller_id: str
    request: NotificationRequest
    job_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    attempt_count: int = 0
    next_eligible_at: Optional[datetime] = None
    enqueued_at: datetime = field(default_factory=utcnow)

    @property
    def priority(self) -> Priority:
        return self.request.priority

    @property
    def channel(self) -> Channel:
        return self.request.channel

    @property
    def idempotency_key(self) -> str:
        return self.request.idempotency_key or ""

    def is_eligible(self, now: datetime) -> bool:
        return self.next_eligible_at is None or self.next_eligible_at <= now


@dataclass(frozen=True)
class AttemptRecord:
    """One delivery attempt, appended to a status record's history."""

    attempt_number: int
    outcome: DeliveryStatus
    timestamp: datetime = field(default_factory=utcnow)
    error: Optional[str] = None
    error_code: Optional[str] = None
    duration_seconds: Optional[float] = None
    provider_message_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["outcome"] = self.outcome.value
        data["timestamp"] = self.timestamp.isoformat()
        return data


@dataclass
class DeliveryStatusRecord:
    """Per-job lifecycle record.

    ``attempt_count`` always equals ``len(attempt_history)``.
    """

    job_id: str
    caller_id: str
    idempotency_key: str
    channel: Channel
    priority: Priority
    status: DeliveryStatus = DeliveryStatus.QUEUED
    attempt_count: int = 0
    attempt_history: List[AttemptRecord] = field(default_factory=list)
    last_error: Optional[str] = None
    last_error_code: Optional[str] = None
    next_eligible_at: Optional[datetime] = None
    receipt: Optional[Dict[str, Any]] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    expires_at: Optional[datetime] = None

    def copy(self) -> "DeliveryStatusRecord":
        return replace(
            self,
            attempt_history=list(self.attempt_history),
            receipt=dict(self.receipt) if self.receipt is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_id": self.job_id,
            "channel": self.channel.value,
            "priority": self.priority.value,
            "status": self.status.value,
            "attempt_count": self.attempt_count,
            "attempt_history": [a.to_dict() for a in self.attempt_history],
            "last_error_code": self.last_error_code,
            "next_eligible_at": (
                self.next_eligible_at.isoformat() if self.next_eligible_at else None
            ),
            "receipt": self.receipt,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class DeadLetterEntry:
    """A job that will never be retried automatically."""

    job: Job
    attempt_history: List[AttemptRecord]
    final_error: str
    error_code: str
    reason: DeadLetterReason
    dead_lettered_at: datetime = field(default_factory=utcnow)

    @property
    def job_id(self) -> str:
        return self.job.job_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_id": self.job.job_id,
            "caller_id": self.job.caller_id,
            "idempotency_key": self.job.idempotency_key,
            "channel": self.job.channel.value,
            "priority": self.job.priority.value,
            "template": self.job.request.template,
            "attempt_count": self.job.attempt_count,
            "attempt_history": [a.to_dict() for a in self.attempt_history],
            "final_error": self.final_error,
            "error_code": self.error_code,
            "reason": self.reason.value,
            "dead_lettered_at": self.dead_lettered_at.isoformat(),
        }


@dataclass(frozen=True)
class SubmissionResult:
    """Response to a submission; also the body stored for replay.

    Attributes:
        job_id: Job created for the original submission
        status: DeliveryStatus value at the time the body was stored
        replayed: True when returned from the idempotency ledger
        receipt: Delivery receipt once delivered
        error_code: Final error code once failed
    """

    job_id: str
    status: str
    replayed: bool = False
    receipt: Optional[Dict[str, Any]] = None
    error_code: Optional[str] = None

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"job_id": self.job_id, "status": self.status}
        if self.receipt is not None:
            body["receipt"] = self.receipt
        if self.error_code is not None:
            body["error_code"] = self.error_code
        return body

    @classmethod
    def from_body(
        cls, body: Mapping[str, Any], replayed: bool = True
    ) -> "SubmissionResult":
        return cls(
            job_id=body["job_id"],
            status=body["status"],
            replayed=replayed,
            receipt=body.get("receipt"),
            error_code=body.get("error_code"),
        )
