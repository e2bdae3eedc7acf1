"""Dispatch service: wires the gateway, queues, workers and stores.

The service object is created once at startup (see server.lifespan) and
shared by the API routes and the maintenance jobs.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

from infrastructure.idempotency import IdempotencyLedger, create_ledger
from infrastructure.logging import get_module_logger
from infrastructure.notifications import ChannelAdapter, build_channel_adapters
from infrastructure.operations import OperationResult
from infrastructure.resilience import RetryConfig
from modules.dispatch.dead_letter import InMemoryDeadLetterStore
from modules.dispatch.domain import (
    DeadLetterEntry,
    DeliveryStatus,
    DeliveryStatusRecord,
    DispatchError,
    Job,
    NotificationRequest,
    SubmissionResult,
    utcnow,
)
from modules.dispatch.gateway import SubmissionGateway
from modules.dispatch.queues import PriorityQueuePair
from modules.dispatch.resolver import NotificationResolver, PayloadResolver
from modules.dispatch.retry_controller import RetryController
from modules.dispatch.status_ledger import InMemoryStatusLedger, StatusLedger
from modules.dispatch.worker import DispatchWorker, DispatchWorkerPool

if TYPE_CHECKING:
    from infrastructure.configuration import Settings

logger = get_module_logger()


class DispatchService:
    """Facade over the dispatch components.

    Example:
        service = DispatchService.from_settings(settings)
        service.start()

        result = service.submit("billing", request)
        record = service.get_status(result.job_id)

        service.stop(timeout=10)
    """

    def __init__(
        self,
        queues: PriorityQueuePair,
        status_ledger: StatusLedger,
        dead_letters: InMemoryDeadLetterStore,
        idempotency_ledger: IdempotencyLedger,
        gateway: SubmissionGateway,
        pool: DispatchWorkerPool,
        adapters: Dict[str, ChannelAdapter],
        executors: Dict[str, ThreadPoolExecutor],
        clock: Callable[[], datetime] = utcnow,
    ):
        self.queues = queues
        self.status_ledger = status_ledger
        self.dead_letters = dead_letters
        self.idempotency_ledger = idempotency_ledger
        self.gateway = gateway
        self.pool = pool
        self.adapters = adapters
        self.executors = executors
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: "Settings",
        adapters: Optional[Dict[str, ChannelAdapter]] = None,
        idempotency_ledger: Optional[IdempotencyLedger] = None,
        resolver: Optional[NotificationResolver] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> "DispatchService":
        """Build every component from Settings.

        Args:
            settings: Settings instance
            adapters: Channel adapters, built from settings when omitted
            idempotency_ledger: Ledger, selected by IDEMPOTENCY_BACKEND when omitted
            resolver: Notification resolver, PayloadResolver when omitted
            clock: UTC clock, injectable for tests
        """
        dispatch = settings.dispatch
        retry_config = RetryConfig.from_settings(settings.retry)

        if adapters is None:
            adapters = build_channel_adapters(settings)
        if idempotency_ledger is None:
            idempotency_ledger = create_ledger(settings)
        resolver = resolver or PayloadResolver()

        queues = PriorityQueuePair(
            capacity_high=dispatch.queue_capacity_high,
            capacity_low=dispatch.queue_capacity_low,
            lease_seconds=dispatch.lease_seconds,
            clock=clock,
        )
        status_ledger = InMemoryStatusLedger(clock=clock)
        dead_letters = InMemoryDeadLetterStore()
        # Timed-out sends keep their thread until they return, so each channel
        # gets its own pool and a hung provider cannot starve the others
        executors = {
            channel: ThreadPoolExecutor(
                max_workers=dispatch.worker_count,
                thread_name_prefix=f"{channel}-send",
            )
            for channel in adapters
        }
        controller = RetryController(
            queues=queues,
            status_ledger=status_ledger,
            dead_letters=dead_letters,
            idempotency_ledger=idempotency_ledger,
            config=retry_config,
            clock=clock,
        )
        timeouts = {
            channel: dispatch.timeout_for(channel) for channel in ("email", "sms", "push")
        }

        def worker_factory(worker_id: str) -> DispatchWorker:
            return DispatchWorker(
                worker_id=worker_id,
                queues=queues,
                status_ledger=status_ledger,
                retry_controller=controller,
                adapters=adapters,
                resolver=resolver,
                idempotency_ledger=idempotency_ledger,
                executors=executors,
                timeouts=timeouts,
                retry_config=retry_config,
                poll_interval=dispatch.poll_interval_seconds,
                clock=clock,
            )

        gateway = SubmissionGateway(
            queues=queues,
            status_ledger=status_ledger,
            idempotency_ledger=idempotency_ledger,
            ttl_seconds=settings.idempotency.IDEMPOTENCY_TTL_SECONDS,
            lock_timeout_seconds=settings.idempotency.IDEMPOTENCY_LOCK_TIMEOUT_SECONDS,
            max_payload_bytes=dispatch.max_payload_bytes,
            status_retention_seconds=dispatch.status_retention_seconds,
            retry_config=retry_config,
        )

        logger.info(
            "dispatch_service_built",
            worker_count=dispatch.worker_count,
            channels=sorted(adapters),
            max_attempts=retry_config.max_attempts,
        )
        return cls(
            queues=queues,
            status_ledger=status_ledger,
            dead_letters=dead_letters,
            idempotency_ledger=idempotency_ledger,
            gateway=gateway,
            pool=DispatchWorkerPool(dispatch.worker_count, worker_factory),
            adapters=adapters,
            executors=executors,
            clock=clock,
        )

    # Submission API

    def submit(self, caller_id: str, request: NotificationRequest) -> SubmissionResult:
        return self.gateway.submit(caller_id, request)

    def get_status(self, job_id: str) -> DeliveryStatusRecord:
        return self.gateway.get_status(job_id)

    def cancel(self, job_id: str) -> DeliveryStatusRecord:
        return self.gateway.cancel(job_id)

    def list_dead_letters(self, limit: int = 50, offset: int = 0) -> List[DeadLetterEntry]:
        return self.dead_letters.list(limit=limit, offset=offset)

    # Lifecycle

    def start(self) -> None:
        self.pool.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the workers, then release blocked dequeues and the executors."""
        self.queues.close()
        self.pool.stop(timeout)
        for executor in self.executors.values():
            executor.shutdown(wait=False, cancel_futures=True)
        logger.info("dispatch_service_stopped")

    @property
    def is_running(self) -> bool:
        return self.pool.is_running

    # Maintenance

    def _return_to_queued(self, job: Job) -> None:
        record = self.status_ledger.get(job.job_id)
        if record is not None and record.status == DeliveryStatus.FAILED_RETRYABLE:
            # Retry recorded but not yet requeued; keep its backoff
            job.next_eligible_at = record.next_eligible_at
            logger.warning(
                "reaped_job_keeps_backoff",
                job_id=job.job_id,
                next_eligible_at=record.next_eligible_at,
            )
            return
        try:
            self.status_ledger.transition(job.job_id, DeliveryStatus.QUEUED)
        except DispatchError as e:
            # Worker died before marking the job in progress
            logger.warning(
                "reaped_job_status_unchanged", job_id=job.job_id, error_code=e.error_code
            )

    def reap_expired_leases(self) -> int:
        """Make jobs with lapsed leases claimable again."""
        reaped = self.queues.reap_expired_leases(
            self._clock(), on_reap=self._return_to_queued
        )
        if reaped:
            logger.warning("expired_leases_reaped", count=len(reaped))
        return len(reaped)

    def purge_idempotency_records(self) -> int:
        return self.idempotency_ledger.purge_expired(self._clock())

    def purge_status_records(self) -> int:
        return self.status_ledger.purge_expired(self._clock())

    # Introspection

    def health_check(self) -> Dict[str, OperationResult]:
        """Return the health of each configured channel."""
        results: Dict[str, OperationResult] = {}
        for name, adapter in self.adapters.items():
            try:
                results[name] = adapter.health_check()
            except Exception as e:
                logger.error("channel_health_check_failed", channel=name, error=str(e))
                results[name] = OperationResult.transient_error(
                    message=f"Health check failed: {e}", error_code="HEALTH_CHECK_FAILED"
                )
        return results

    def get_stats(self) -> Dict[str, Any]:
        return {
            "queues": self.queues.stats(),
            "status": self.status_ledger.get_stats(),
            "dead_letters": self.dead_letters.get_stats(),
            "idempotency": self.idempotency_ledger.get_stats(),
            "workers": {"size": self.pool.size, "running": self.pool.is_running},
        }
