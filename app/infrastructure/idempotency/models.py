"""Idempotency ledger models."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional


class IdempotencyStatus(str, Enum):
    """Lifecycle of an idempotency record.

    Values:
        PENDING: Submission accepted (or being accepted), no final outcome yet
        SUCCEEDED: The job was delivered
        FAILED: The job was dead-lettered or cancelled
    """

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class IdempotencyRecord:
    """One record per (caller_id, idempotency_key).

    ``result_body`` holds the response replayed to duplicate submissions. It
    is None only while the submitting request still holds the short-lived
    lock, i.e. before a job has been enqueued.

    Attributes:
        caller_id: Identity of the submitting caller (scopes the key)
        idempotency_key: Caller-supplied key
        request_hash: SHA-256 of the normalized request body
        status: IdempotencyStatus
        result_body: Stored response, or None while the lock is held
        created_at: When the record was first created
        updated_at: When the record was last written
        expires_at: When the record stops deduplicating
    """

    caller_id: str
    idempotency_key: str
    request_hash: str
    status: IdempotencyStatus = IdempotencyStatus.PENDING
    result_body: Optional[Dict[str, Any]] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    expires_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.caller_id:
            raise ValueError("caller_id is required")
        if not self.idempotency_key:
            raise ValueError("idempotency_key is required")
        if self.expires_at is None:
            self.expires_at = self.created_at + timedelta(days=1)

    @classmethod
    def new_pending(
        cls,
        caller_id: str,
        idempotency_key: str,
        request_hash: str,
        ttl_seconds: int,
        now: Optional[datetime] = None,
    ) -> "IdempotencyRecord":
        """Create a pending record holding the submission lock."""
        now = now or _utcnow()
        return cls(
            caller_id=caller_id,
            idempotency_key=idempotency_key,
            request_hash=request_hash,
            created_at=now,
            updated_at=now,
            expires_at=now + timedelta(seconds=ttl_seconds),
        )

    @property
    def ledger_key(self) -> str:
        return make_ledger_key(self.caller_id, self.idempotency_key)

    @property
    def has_result(self) -> bool:
        return self.result_body is not None

    def matches(self, request_hash: str) -> bool:
        return self.request_hash == request_hash

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or _utcnow()
        return self.expires_at is not None and self.expires_at <= now

    def is_abandoned(
        self, lock_timeout_seconds: float, now: Optional[datetime] = None
    ) -> bool:
        """True for a pending lock whose holder never stored a response."""
        now = now or _utcnow()
        return (
            self.status == IdempotencyStatus.PENDING
            and self.result_body is None
            and self.created_at + timedelta(seconds=lock_timeout_seconds) <= now
        )

    def copy(self) -> "IdempotencyRecord":
        body = dict(self.result_body) if self.result_body is not None else None
        return replace(self, result_body=body)


def make_ledger_key(caller_id: str, idempotency_key: str) -> str:
    """Compose the storage key; keys are scoped per caller."""
    return f"{caller_id}#{idempotency_key}"
