"""Retry and dead-letter decisions for failed delivery attempts.

Given a failed attempt, the controller either schedules another attempt
with exponential backoff or moves the job to the dead letter store. A job is
attempted at most ``max_attempts`` times; permanent errors stop after one.
"""

import random
import time
from datetime import datetime, timedelta
from typing import Callable, Optional

from infrastructure.idempotency import IdempotencyLedger, IdempotencyStatus
from infrastructure.logging import get_module_logger
from infrastructure.notifications import DeliveryError
from infrastructure.resilience import RetryConfig, RetryResult, calculate_backoff
from modules.dispatch.dead_letter import InMemoryDeadLetterStore
from modules.dispatch.domain import (
    AttemptRecord,
    DeadLetterEntry,
    DeadLetterReason,
    DeliveryStatus,
    SubmissionResult,
    utcnow,
)
from modules.dispatch.outcomes import persist_status, store_final_response
from modules.dispatch.queues import Lease, PriorityQueuePair
from modules.dispatch.status_ledger import StatusLedger

logger = get_module_logger()


class RetryController:
    """Classifies failed attempts and applies the retry policy.

    ``lease.job.attempt_count`` must already include the failed attempt.
    """

    def __init__(
        self,
        queues: PriorityQueuePair,
        status_ledger: StatusLedger,
        dead_letters: InMemoryDeadLetterStore,
        idempotency_ledger: IdempotencyLedger,
        config: RetryConfig,
        clock: Callable[[], datetime] = utcnow,
        rng: Callable[[], float] = random.random,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.queues = queues
        self.status_ledger = status_ledger
        self.dead_letters = dead_letters
        self.idempotency_ledger = idempotency_ledger
        self.config = config
        self._clock = clock
        self._rng = rng
        self._sleep = sleep

    def should_retry(self, error: DeliveryError, attempt_count: int) -> bool:
        return error.retryable and attempt_count < self.config.max_attempts

    def handle_failure(
        self,
        lease: Lease,
        error: DeliveryError,
        duration_seconds: Optional[float] = None,
    ) -> RetryResult:
        """Record a failed attempt and retry or dead-letter the job.

        Returns:
            RetryResult.RETRY when the job was re-enqueued, otherwise
            RetryResult.PERMANENT_FAILURE.
        """
        job = lease.job
        attempt = job.attempt_count

        if self.should_retry(error, attempt):
            delay = calculate_backoff(
                attempt, self.config, retry_after=error.retry_after, rng=self._rng
            )
            next_eligible_at = self._clock() + timedelta(seconds=delay)
            persist_status(
                lambda: self.status_ledger.record_attempt(
                    job.job_id,
                    AttemptRecord(
                        attempt_number=attempt,
                        outcome=DeliveryStatus.FAILED_RETRYABLE,
                        timestamp=self._clock(),
                        error=error.message,
                        error_code=error.error_code,
                        duration_seconds=duration_seconds,
                    ),
                    next_eligible_at=next_eligible_at,
                ),
                self.config,
                operation="record_retryable_attempt",
                sleep=self._sleep,
            )
            self.queues.requeue(lease, next_eligible_at)
            logger.warning(
                "delivery_retry_scheduled",
                job_id=job.job_id,
                channel=job.channel.value,
                attempt=attempt,
                max_attempts=self.config.max_attempts,
                error_code=error.error_code,
                next_retry_in_seconds=round(delay, 3),
            )
            return RetryResult.RETRY

        reason = (
            DeadLetterReason.MAX_ATTEMPTS_EXCEEDED
            if error.retryable
            else DeadLetterReason.PERMANENT_ERROR
        )
        record = persist_status(
            lambda: self.status_ledger.record_attempt(
                job.job_id,
                AttemptRecord(
                    attempt_number=attempt,
                    outcome=DeliveryStatus.FAILED_PERMANENT,
                    timestamp=self._clock(),
                    error=error.message,
                    error_code=error.error_code,
                    duration_seconds=duration_seconds,
                ),
            ),
            self.config,
            operation="record_permanent_attempt",
            sleep=self._sleep,
        )
        self.dead_letters.add(
            DeadLetterEntry(
                job=job,
                attempt_history=list(record.attempt_history),
                final_error=error.message,
                error_code=error.error_code,
                reason=reason,
                dead_lettered_at=self._clock(),
            )
        )
        store_final_response(
            self.idempotency_ledger,
            job,
            IdempotencyStatus.FAILED,
            SubmissionResult(
                job_id=job.job_id,
                status=DeliveryStatus.FAILED_PERMANENT.value,
                error_code=error.error_code,
            ).to_body(),
            self.config,
            sleep=self._sleep,
        )
        self.queues.ack(lease)
        logger.error(
            "delivery_failed_permanently",
            job_id=job.job_id,
            channel=job.channel.value,
            attempts=attempt,
            reason=reason.value,
            error_code=error.error_code,
        )
        return RetryResult.PERMANENT_FAILURE
