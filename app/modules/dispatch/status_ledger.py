"""Per-job delivery status store.

The status ledger owns the lifecycle table: every write goes through
``transition`` or ``record_attempt``, which reject moves the table does not
allow. Records are returned as copies so readers never observe a write in
progress.
"""

import threading
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional, Protocol

from infrastructure.logging import get_module_logger
from modules.dispatch.domain import (
    AttemptRecord,
    DeliveryStatus,
    DeliveryStatusRecord,
    InvalidStatusTransition,
    Job,
    JobNotFound,
    can_transition,
    utcnow,
)

logger = get_module_logger()


class StatusLedgerError(Exception):
    """The status store backend could not complete a write.

    Writers retry on this error; lifecycle violations are not retried.
    """


class StatusLedger(Protocol):
    """Storage contract for delivery status records."""

    def create(self, job: Job, retention_seconds: int) -> DeliveryStatusRecord: ...

    def get(self, job_id: str) -> Optional[DeliveryStatusRecord]: ...

    def transition(
        self,
        job_id: str,
        status: DeliveryStatus,
        error: Optional[str] = None,
        error_code: Optional[str] = None,
        next_eligible_at: Optional[datetime] = None,
    ) -> DeliveryStatusRecord: ...

    def record_attempt(
        self,
        job_id: str,
        attempt: AttemptRecord,
        next_eligible_at: Optional[datetime] = None,
        receipt: Optional[Dict[str, Any]] = None,
    ) -> DeliveryStatusRecord: ...

    def delete(self, job_id: str) -> bool: ...

    def purge_expired(self, now: Optional[datetime] = None) -> int: ...

    def get_stats(self) -> Dict[str, Any]: ...


class InMemoryStatusLedger:
    """Thread-safe in-process status ledger.

    Records for finished jobs are kept until ``expires_at`` and then removed
    by ``purge_expired``. Records for unfinished jobs are never purged.
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._records: Dict[str, DeliveryStatusRecord] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def create(self, job: Job, retention_seconds: int) -> DeliveryStatusRecord:
        now = self._clock()
        record = DeliveryStatusRecord(
            job_id=job.job_id,
            caller_id=job.caller_id,
            idempotency_key=job.idempotency_key,
            channel=job.channel,
            priority=job.priority,
            status=DeliveryStatus.QUEUED,
            next_eligible_at=job.next_eligible_at,
            created_at=now,
            updated_at=now,
            expires_at=now + timedelta(seconds=retention_seconds),
        )
        with self._lock:
            if job.job_id in self._records:
                raise ValueError(f"Status record already exists for {job.job_id}")
            self._records[job.job_id] = record
        return record.copy()

    def get(self, job_id: str) -> Optional[DeliveryStatusRecord]:
        with self._lock:
            record = self._records.get(job_id)
            return record.copy() if record else None

    def _require(self, job_id: str) -> DeliveryStatusRecord:
        record = self._records.get(job_id)
        if record is None:
            raise JobNotFound(f"No status record for job {job_id}")
        return record

    def _apply(
        self, record: DeliveryStatusRecord, status: DeliveryStatus
    ) -> None:
        if not can_transition(record.status, status):
            logger.warning(
                "invalid_status_transition",
                job_id=record.job_id,
                current=record.status.value,
                target=status.value,
            )
            raise InvalidStatusTransition(
                record.job_id, record.status.value, status.value
            )
        record.status = status
        record.updated_at = self._clock()

    def transition(
        self,
        job_id: str,
        status: DeliveryStatus,
        error: Optional[str] = None,
        error_code: Optional[str] = None,
        next_eligible_at: Optional[datetime] = None,
    ) -> DeliveryStatusRecord:
        """Move a job to ``status`` without recording an attempt.

        Raises:
            JobNotFound: If there is no record for ``job_id``.
            InvalidStatusTransition: If the move is not allowed.
        """
        with self._lock:
            record = self._require(job_id)
            self._apply(record, status)
            if error is not None:
                record.last_error = error
                record.last_error_code = error_code
            record.next_eligible_at = next_eligible_at
            return record.copy()

    def record_attempt(
        self,
        job_id: str,
        attempt: AttemptRecord,
        next_eligible_at: Optional[datetime] = None,
        receipt: Optional[Dict[str, Any]] = None,
    ) -> DeliveryStatusRecord:
        """Append an attempt and move to its outcome in one step.

        The attempt count and history length always move together.
        """
        with self._lock:
            record = self._require(job_id)
            self._apply(record, attempt.outcome)
            record.attempt_history.append(attempt)
            record.attempt_count = len(record.attempt_history)
            record.next_eligible_at = next_eligible_at
            if attempt.error is not None:
                record.last_error = attempt.error
                record.last_error_code = attempt.error_code
            if receipt is not None:
                record.receipt = dict(receipt)
            return record.copy()

    def delete(self, job_id: str) -> bool:
        with self._lock:
            return self._records.pop(job_id, None) is not None

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        now = now or self._clock()
        with self._lock:
            expired = [
                job_id
                for job_id, record in self._records.items()
                if record.status.is_terminal
                and record.expires_at is not None
                and record.expires_at <= now
            ]
            for job_id in expired:
                del self._records[job_id]
        if expired:
            logger.info("status_records_purged", count=len(expired))
        return len(expired)

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            by_status: Dict[str, int] = {}
            for record in self._records.values():
                by_status[record.status.value] = by_status.get(record.status.value, 0) + 1
            return {"total_records": len(self._records), "by_status": by_status}
