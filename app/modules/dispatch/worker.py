"""Dispatch workers: claim a job, send it, record the outcome.

Each worker thread processes one job at a time. Adapter calls run on a
bounded executor per channel so the worker can stop waiting once the channel
timeout elapses; the timed-out call is abandoned, not interrupted. A provider
that hangs can only exhaust its own channel's executor.
"""

import threading
import time
from concurrent.futures import Executor, TimeoutError as FutureTimeoutError
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from infrastructure.idempotency import IdempotencyLedger, IdempotencyStatus
from infrastructure.logging import bind_request_context, get_module_logger
from infrastructure.notifications import (
    ChannelAdapter,
    DeliveryError,
    DeliveryReceipt,
    DeliveryTimeout,
    ProviderPermanent,
    ProviderTransient,
)
from infrastructure.resilience import RetryConfig
from modules.dispatch.domain import (
    AttemptRecord,
    DeliveryStatus,
    DispatchError,
    Job,
    SubmissionResult,
    utcnow,
)
from modules.dispatch.outcomes import persist_status, store_final_response
from modules.dispatch.queues import Lease, PriorityQueuePair
from modules.dispatch.resolver import NotificationResolver
from modules.dispatch.retry_controller import RetryController
from modules.dispatch.status_ledger import StatusLedger, StatusLedgerError

logger = get_module_logger()

DEFAULT_SEND_TIMEOUT_SECONDS = 30.0


class SendNotStarted(Exception):
    """The channel executor was still busy when the send timeout elapsed."""


class DispatchWorker:
    """Processes jobs from the priority queue pair.

    Attributes:
        worker_id: Identifier recorded on leases and in logs
        adapters: Channel name to adapter
        executors: Channel name to the executor its sends run on
        timeouts: Channel name to send timeout in seconds
        poll_interval: Max seconds a dequeue blocks before re-checking stop
    """

    def __init__(
        self,
        worker_id: str,
        queues: PriorityQueuePair,
        status_ledger: StatusLedger,
        retry_controller: RetryController,
        adapters: Dict[str, ChannelAdapter],
        resolver: NotificationResolver,
        idempotency_ledger: IdempotencyLedger,
        executors: Dict[str, Executor],
        timeouts: Optional[Dict[str, float]] = None,
        retry_config: Optional[RetryConfig] = None,
        poll_interval: float = 1.0,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.worker_id = worker_id
        self.queues = queues
        self.status_ledger = status_ledger
        self.retry_controller = retry_controller
        self.adapters = adapters
        self.resolver = resolver
        self.idempotency_ledger = idempotency_ledger
        self.executors = executors
        self.timeouts = timeouts or {}
        self.retry_config = retry_config or RetryConfig()
        self.poll_interval = poll_interval
        self._clock = clock
        self.log = logger.bind(component="dispatch_worker", worker_id=worker_id)

    def process_next(self, timeout: Optional[float] = None) -> bool:
        """Claim and process one job.

        Args:
            timeout: Seconds to wait for a job, defaults to poll_interval

        Returns:
            True if a job was claimed, False if none became eligible.
        """
        lease = self.queues.dequeue(
            self.worker_id,
            timeout=self.poll_interval if timeout is None else timeout,
        )
        if lease is None:
            return False

        job = lease.job
        with bind_request_context(
            job_id=job.job_id,
            caller_id=job.caller_id,
            channel=job.channel.value,
        ):
            self._process(lease)
        return True

    def run_forever(self, stop_event: threading.Event) -> None:
        """Process jobs until stop_event is set."""
        self.log.info("dispatch_worker_started")
        while not stop_event.is_set():
            try:
                self.process_next()
            except Exception as e:
                # Keep the thread alive; the job's lease expires and is reaped
                self.log.error(
                    "dispatch_worker_iteration_failed", error=str(e), exc_info=True
                )
        self.log.info("dispatch_worker_stopped")

    def _process(self, lease: Lease) -> None:
        job = lease.job

        try:
            record = persist_status(
                lambda: self.status_ledger.transition(
                    job.job_id, DeliveryStatus.IN_PROGRESS
                ),
                self.retry_config,
                operation="mark_in_progress",
            )
        except StatusLedgerError as e:
            self.log.error("status_write_failed", stage="claim", error=str(e))
            return
        except DispatchError as e:
            # Cancelled or purged between enqueue and claim
            self.log.warning("job_claim_rejected", error_code=e.error_code)
            self.queues.ack(lease)
            return

        attempt = record.attempt_count + 1
        self.log.info("delivery_attempt_started", attempt=attempt)

        started = time.monotonic()
        receipt: Optional[DeliveryReceipt] = None
        error: Optional[DeliveryError] = None
        try:
            receipt = self._deliver(job)
        except SendNotStarted:
            self._defer(lease)
            return
        except DeliveryError as e:
            error = e
        duration = time.monotonic() - started

        if not self.queues.holds_lease(lease):
            # Lease expired mid-send; the job was handed to another worker
            self.log.warning(
                "lease_lost_outcome_discarded",
                attempt=attempt,
                delivered=receipt is not None,
            )
            return

        job.attempt_count = attempt
        try:
            if receipt is not None:
                self._complete(lease, receipt, duration)
            else:
                self.retry_controller.handle_failure(lease, error, duration)
        except StatusLedgerError as e:
            # Not acked: the lease expires and the job is delivered again
            self.log.error(
                "status_write_failed",
                stage="outcome",
                attempt=attempt,
                outcome="delivered" if receipt is not None else "failed",
                error_code=error.error_code if error else None,
                provider_message_id=receipt.provider_message_id if receipt else None,
                error=str(e),
            )
        except DispatchError as e:
            self.log.error(
                "outcome_rejected", attempt=attempt, error_code=e.error_code
            )
            self.queues.ack(lease)

    def _deliver(self, job: Job) -> DeliveryReceipt:
        channel = job.channel.value
        adapter = self.adapters.get(channel)
        if adapter is None:
            raise ProviderPermanent(
                f"No adapter configured for channel {channel}",
                error_code="CHANNEL_NOT_CONFIGURED",
            )

        notification = self.resolver.resolve(job)
        timeout = self.timeouts.get(channel, DEFAULT_SEND_TIMEOUT_SECONDS)

        try:
            future = self.executors[channel].submit(adapter.send, notification)
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            if future.cancel():
                raise SendNotStarted(f"{channel} executor is busy")
            raise DeliveryTimeout(f"{channel} send exceeded {timeout}s")
        except DeliveryError:
            raise
        except Exception as e:
            self.log.error("adapter_unexpected_error", error=str(e), exc_info=True)
            raise ProviderTransient(
                f"Unexpected adapter error: {e}", error_code="UNEXPECTED_ERROR"
            ) from e

    def _defer(self, lease: Lease) -> None:
        """Put back a job whose send never reached its adapter.

        No attempt is recorded; the job is claimable again after the base
        retry delay.
        """
        job = lease.job
        if not self.queues.holds_lease(lease):
            self.log.warning("lease_lost_before_defer")
            return
        try:
            persist_status(
                lambda: self.status_ledger.transition(job.job_id, DeliveryStatus.QUEUED),
                self.retry_config,
                operation="defer_unsent",
            )
        except StatusLedgerError as e:
            self.log.error("status_write_failed", stage="defer", error=str(e))
            return
        except DispatchError as e:
            self.log.warning("job_defer_rejected", error_code=e.error_code)
            self.queues.ack(lease)
            return

        delay = self.retry_config.base_delay_seconds
        self.queues.requeue(lease, self._clock() + timedelta(seconds=delay))
        self.log.warning(
            "send_deferred_channel_busy",
            channel=job.channel.value,
            next_retry_in_seconds=delay,
        )

    def _complete(self, lease: Lease, receipt: DeliveryReceipt, duration: float) -> None:
        job = lease.job
        receipt_body = receipt.model_dump(mode="json", exclude={"provider_response"})

        persist_status(
            lambda: self.status_ledger.record_attempt(
                job.job_id,
                AttemptRecord(
                    attempt_number=job.attempt_count,
                    outcome=DeliveryStatus.DELIVERED,
                    timestamp=self._clock(),
                    duration_seconds=duration,
                    provider_message_id=receipt.provider_message_id,
                ),
                receipt=receipt_body,
            ),
            self.retry_config,
            operation="record_delivery",
        )
        store_final_response(
            self.idempotency_ledger,
            job,
            IdempotencyStatus.SUCCEEDED,
            SubmissionResult(
                job_id=job.job_id,
                status=DeliveryStatus.DELIVERED.value,
                receipt=receipt_body,
            ).to_body(),
            self.retry_config,
        )
        self.queues.ack(lease)
        self.log.info(
            "delivery_succeeded",
            attempt=job.attempt_count,
            provider_message_id=receipt.provider_message_id,
            duration_seconds=round(duration, 3),
        )


class DispatchWorkerPool:
    """Runs ``size`` DispatchWorkers on daemon threads.

    Example:
        pool = DispatchWorkerPool(4, lambda worker_id: DispatchWorker(worker_id, ...))
        pool.start()
        ...
        pool.stop(timeout=5)
    """

    def __init__(self, size: int, worker_factory: Callable[[str], DispatchWorker]):
        if size < 1:
            raise ValueError("worker pool size must be at least 1")
        self.size = size
        self.workers: List[DispatchWorker] = [
            worker_factory(f"dispatch-worker-{i + 1}") for i in range(size)
        ]
        self._threads: List[threading.Thread] = []
        self._stop_event = threading.Event()

    @property
    def is_running(self) -> bool:
        return any(thread.is_alive() for thread in self._threads)

    def start(self) -> None:
        if self.is_running:
            logger.warning("worker_pool_already_running", size=self.size)
            return
        self._stop_event.clear()
        self._threads = [
            threading.Thread(
                target=worker.run_forever,
                args=(self._stop_event,),
                name=worker.worker_id,
                daemon=True,
            )
            for worker in self.workers
        ]
        for thread in self._threads:
            thread.start()
        logger.info("worker_pool_started", size=self.size)

    def stop(self, timeout: Optional[float] = None) -> None:
        """Signal every worker to stop and wait for in-flight jobs."""
        self._stop_event.set()
        for thread in self._threads:
            thread.join(timeout)
        still_running = [t.name for t in self._threads if t.is_alive()]
        if still_running:
            logger.warning("worker_pool_stop_timed_out", workers=still_running)
        else:
            logger.info("worker_pool_stopped", size=self.size)
