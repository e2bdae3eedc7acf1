"""Submission gateway: idempotent acceptance of notification requests.

A request is accepted at most once per (caller_id, idempotency_key). The
first submission creates a pending idempotency record, a job, its status
record and a queue entry. Repeats replay the stored response; a different
request under the same key is rejected.
"""

import time
from typing import Callable, Optional

from infrastructure.idempotency import (
    IdempotencyLedger,
    IdempotencyLedgerError,
    IdempotencyRecord,
    IdempotencyStatus,
    build_request_hash,
    canonical_json,
)
from infrastructure.logging import get_module_logger
from infrastructure.resilience import RetryConfig, call_with_retry
from modules.dispatch.domain import (
    DeliveryStatus,
    DeliveryStatusRecord,
    IdempotencyConflict,
    IdempotencyKeyReuseError,
    InvalidRequest,
    Job,
    JobNotCancellable,
    JobNotFound,
    LedgerUnavailable,
    MissingIdempotencyKey,
    NotificationRequest,
    QueueSaturated,
    SubmissionResult,
)
from modules.dispatch.queues import PriorityQueuePair
from modules.dispatch.status_ledger import StatusLedger

logger = get_module_logger()


class SubmissionGateway:
    """Accepts, looks up and cancels dispatch jobs.

    Attributes:
        ttl_seconds: How long an idempotency record is kept
        lock_timeout_seconds: Age after which a pending record without a
            stored response is treated as abandoned
        max_payload_bytes: Upper bound on the serialized request payload
        status_retention_seconds: How long finished status records are kept
        retry_config: Supplies the attempts for storing the accepted response
    """

    def __init__(
        self,
        queues: PriorityQueuePair,
        status_ledger: StatusLedger,
        idempotency_ledger: IdempotencyLedger,
        ttl_seconds: int = 86400,
        lock_timeout_seconds: float = 30,
        max_payload_bytes: int = 16384,
        status_retention_seconds: int = 2592000,
        retry_config: Optional[RetryConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.queues = queues
        self.status_ledger = status_ledger
        self.idempotency_ledger = idempotency_ledger
        self.ttl_seconds = ttl_seconds
        self.lock_timeout_seconds = lock_timeout_seconds
        self.max_payload_bytes = max_payload_bytes
        self.status_retention_seconds = status_retention_seconds
        self.retry_config = retry_config or RetryConfig()
        self._sleep = sleep

    def _validate(self, caller_id: str, request: NotificationRequest) -> str:
        key = (request.idempotency_key or "").strip()
        if not key:
            raise MissingIdempotencyKey("An idempotency key is required")
        if not caller_id or not caller_id.strip():
            raise InvalidRequest("A caller id is required")
        size = len(canonical_json(request.payload).encode("utf-8"))
        if size > self.max_payload_bytes:
            raise InvalidRequest(
                f"Payload is {size} bytes, limit is {self.max_payload_bytes}"
            )
        return key

    def _from_existing(
        self, existing: IdempotencyRecord, request_hash: str
    ) -> SubmissionResult:
        if not existing.matches(request_hash):
            logger.warning(
                "idempotency_key_reused",
                caller_id=existing.caller_id,
                idempotency_key=existing.idempotency_key,
            )
            raise IdempotencyKeyReuseError(
                "Idempotency key was already used with a different request"
            )
        if existing.has_result:
            logger.info(
                "submission_replayed",
                caller_id=existing.caller_id,
                idempotency_key=existing.idempotency_key,
                job_id=existing.result_body.get("job_id"),
            )
            return SubmissionResult.from_body(existing.result_body, replayed=True)
        raise IdempotencyConflict(
            "A submission with this idempotency key is still being accepted"
        )

    def submit(self, caller_id: str, request: NotificationRequest) -> SubmissionResult:
        """Accept a request exactly once per idempotency key.

        Raises:
            MissingIdempotencyKey, InvalidRequest: Malformed submission.
            IdempotencyKeyReuseError: Key already used for another request.
            IdempotencyConflict: A submission with this key is in flight.
            QueueSaturated: Target queue is full; nothing was recorded.
            LedgerUnavailable: The idempotency ledger failed.
        """
        key = self._validate(caller_id, request)
        request_hash = build_request_hash(request.fingerprint_body())

        try:
            existing = self.idempotency_ledger.get(caller_id, key)
            # An abandoned lock falls through and is replaced by create_if_absent
            if existing is not None and not existing.is_abandoned(
                self.lock_timeout_seconds
            ):
                return self._from_existing(existing, request_hash)

            created, existing = self.idempotency_ledger.create_if_absent(
                IdempotencyRecord.new_pending(
                    caller_id, key, request_hash, self.ttl_seconds
                ),
                lock_timeout_seconds=self.lock_timeout_seconds,
            )
            if not created:
                if existing is None:
                    raise IdempotencyConflict(
                        "A submission with this idempotency key is still being accepted"
                    )
                return self._from_existing(existing, request_hash)

            return self._accept(caller_id, key, request)
        except IdempotencyLedgerError as e:
            logger.error(
                "idempotency_ledger_unavailable",
                caller_id=caller_id,
                idempotency_key=key,
                error=str(e),
            )
            raise LedgerUnavailable("Idempotency ledger is unavailable") from e

    def _accept(
        self, caller_id: str, key: str, request: NotificationRequest
    ) -> SubmissionResult:
        if request.idempotency_key != key:
            request = request.model_copy(update={"idempotency_key": key})
        job = Job(caller_id=caller_id, request=request)
        result = SubmissionResult(job_id=job.job_id, status=DeliveryStatus.QUEUED.value)

        self.status_ledger.create(job, self.status_retention_seconds)
        # The response is stored before the job becomes claimable, so a lock
        # with no response never hides a queued job
        try:
            call_with_retry(
                lambda: self.idempotency_ledger.update(
                    caller_id,
                    key,
                    IdempotencyStatus.PENDING,
                    result.to_body(),
                    expected_status=IdempotencyStatus.PENDING,
                ),
                attempts=self.retry_config.status_write_attempts,
                retry_on=(IdempotencyLedgerError,),
                operation="idempotency_store_response",
                sleep=self._sleep,
            )
        except IdempotencyLedgerError:
            self.status_ledger.delete(job.job_id)
            self._release_lock(caller_id, key)
            raise

        try:
            self.queues.enqueue(job)
        except QueueSaturated:
            self.status_ledger.delete(job.job_id)
            self.idempotency_ledger.delete(caller_id, key)
            logger.warning(
                "submission_rejected_queue_saturated",
                caller_id=caller_id,
                idempotency_key=key,
                priority=job.priority.value,
            )
            raise

        logger.info(
            "submission_accepted",
            caller_id=caller_id,
            idempotency_key=key,
            job_id=job.job_id,
            channel=job.channel.value,
            priority=job.priority.value,
        )
        return result

    def _release_lock(self, caller_id: str, key: str) -> None:
        try:
            self.idempotency_ledger.delete(caller_id, key)
        except IdempotencyLedgerError as e:
            # Nothing was enqueued; the lock is reclaimed once it is abandoned
            logger.error(
                "idempotency_lock_release_failed",
                caller_id=caller_id,
                idempotency_key=key,
                error=str(e),
            )

    def get_status(self, job_id: str) -> DeliveryStatusRecord:
        record = self.status_ledger.get(job_id)
        if record is None:
            raise JobNotFound(f"Job {job_id} not found")
        return record

    def cancel(self, job_id: str) -> DeliveryStatusRecord:
        """Cancel a job no worker has claimed yet.

        Raises:
            JobNotFound: Unknown job.
            JobNotCancellable: The job is claimed or already finished.
        """
        record = self.get_status(job_id)
        if record.status.is_terminal:
            raise JobNotCancellable(f"Job {job_id} is already {record.status.value}")

        job: Optional[Job] = self.queues.remove(job_id)
        if job is None:
            raise JobNotCancellable(f"Job {job_id} has been claimed by a worker")

        record = self.status_ledger.transition(job_id, DeliveryStatus.CANCELLED)
        try:
            self.idempotency_ledger.update(
                job.caller_id,
                job.idempotency_key,
                IdempotencyStatus.FAILED,
                SubmissionResult(
                    job_id=job_id, status=DeliveryStatus.CANCELLED.value
                ).to_body(),
            )
        except IdempotencyLedgerError as e:
            logger.error("idempotency_finalize_failed", job_id=job_id, error=str(e))
        logger.info("job_cancelled", job_id=job_id, caller_id=job.caller_id)
        return record
