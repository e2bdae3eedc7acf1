"""Priority queue pair with delayed scheduling and exclusive leases.

Two bounded FIFO queues (high, low). ``dequeue`` always drains high before
low, so low-priority work can starve under sustained high-priority load.

Jobs with a future ``next_eligible_at`` are held aside in a delay heap and
appended to the tail of their queue once due, losing their original
position. A dequeued job is leased to one worker and invisible to the others
until it is acked, requeued, or its lease expires and is reaped.
"""

import heapq
import itertools
import threading
import time
import uuid
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Deque, Dict, List, Optional, Tuple

from infrastructure.logging import get_module_logger
from modules.dispatch.domain import Job, Priority, QueueSaturated, utcnow

logger = get_module_logger()


@dataclass(frozen=True)
class Lease:
    """Exclusive claim on a job held by one worker.

    The token distinguishes this claim from a later claim on the same job
    after this one expired.
    """

    job: Job
    worker_id: str
    token: str
    expires_at: datetime

    @property
    def job_id(self) -> str:
        return self.job.job_id


class PriorityQueuePair:
    """Thread-safe two-level priority queue.

    Attributes:
        capacities: max waiting jobs (ready plus delayed) per priority
        lease_seconds: how long a dequeued job stays claimed

    Example:
        queues = PriorityQueuePair(capacity_high=100, capacity_low=500, lease_seconds=60)
        queues.enqueue(job)

        lease = queues.dequeue("worker-1", timeout=1.0)
        if lease:
            ...
            queues.ack(lease)
    """

    def __init__(
        self,
        capacity_high: int,
        capacity_low: int,
        lease_seconds: float,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if capacity_high < 1 or capacity_low < 1:
            raise ValueError("queue capacities must be at least 1")
        if lease_seconds <= 0:
            raise ValueError("lease_seconds must be positive")

        self.capacities = {Priority.HIGH: capacity_high, Priority.LOW: capacity_low}
        self.lease_seconds = lease_seconds
        self._clock = clock

        self._ready: Dict[Priority, Deque[Job]] = {
            Priority.HIGH: deque(),
            Priority.LOW: deque(),
        }
        self._ready_ids: Dict[str, Priority] = {}
        self._delayed: List[Tuple[datetime, int, str]] = []
        self._delayed_jobs: Dict[str, Tuple[int, Job]] = {}
        self._delayed_counts = {Priority.HIGH: 0, Priority.LOW: 0}
        self._leases: Dict[str, Lease] = {}
        self._seq = itertools.count()
        self._cond = threading.Condition()
        self._closed = False

    def _waiting(self, priority: Priority) -> int:
        return len(self._ready[priority]) + self._delayed_counts[priority]

    def _push_ready(self, job: Job, front: bool = False) -> None:
        if front:
            self._ready[job.priority].appendleft(job)
        else:
            self._ready[job.priority].append(job)
        self._ready_ids[job.job_id] = job.priority

    def _push_delayed(self, job: Job) -> None:
        seq = next(self._seq)
        heapq.heappush(self._delayed, (job.next_eligible_at, seq, job.job_id))
        self._delayed_jobs[job.job_id] = (seq, job)
        self._delayed_counts[job.priority] += 1

    def _place(self, job: Job, now: datetime) -> None:
        if job.is_eligible(now):
            self._push_ready(job)
        else:
            self._push_delayed(job)

    def _promote_due(self, now: datetime) -> None:
        """Move due delayed jobs to the tail of their ready queue."""
        while self._delayed and self._delayed[0][0] <= now:
            _, seq, job_id = heapq.heappop(self._delayed)
            entry = self._delayed_jobs.get(job_id)
            if entry is None or entry[0] != seq:
                continue  # removed or rescheduled
            del self._delayed_jobs[job_id]
            job = entry[1]
            self._delayed_counts[job.priority] -= 1
            self._push_ready(job)
            logger.debug("delayed_job_promoted", job_id=job_id)

    def _next_delay_seconds(self, now: datetime) -> Optional[float]:
        while self._delayed:
            eligible_at, seq, job_id = self._delayed[0]
            entry = self._delayed_jobs.get(job_id)
            if entry is None or entry[0] != seq:
                heapq.heappop(self._delayed)
                continue
            return max((eligible_at - now).total_seconds(), 0.0)
        return None

    def enqueue(self, job: Job) -> None:
        """Add a new job to the queue named by its priority.

        Never blocks.

        Raises:
            QueueSaturated: If the target queue is at capacity.
        """
        with self._cond:
            priority = job.priority
            if self._waiting(priority) >= self.capacities[priority]:
                logger.warning(
                    "queue_saturated",
                    priority=priority.value,
                    capacity=self.capacities[priority],
                    job_id=job.job_id,
                )
                raise QueueSaturated(
                    f"{priority.value} queue is at capacity", priority=priority.value
                )
            self._place(job, self._clock())
            self._cond.notify()

    def dequeue(self, worker_id: str, timeout: Optional[float] = None) -> Optional[Lease]:
        """Claim the next eligible job, high priority first.

        Blocks up to ``timeout`` seconds (forever when None) waiting for work.

        Returns:
            A Lease, or None if no job became eligible in time.
        """
        deadline = None if timeout is None else time.monotonic() + max(timeout, 0.0)

        with self._cond:
            while not self._closed:
                now = self._clock()
                self._promote_due(now)

                for priority in (Priority.HIGH, Priority.LOW):
                    if self._ready[priority]:
                        job = self._ready[priority].popleft()
                        del self._ready_ids[job.job_id]
                        lease = Lease(
                            job=job,
                            worker_id=worker_id,
                            token=uuid.uuid4().hex,
                            expires_at=now + timedelta(seconds=self.lease_seconds),
                        )
                        self._leases[job.job_id] = lease
                        logger.debug(
                            "job_leased",
                            job_id=job.job_id,
                            worker_id=worker_id,
                            priority=priority.value,
                        )
                        return lease

                wait = self._next_delay_seconds(now)
                if deadline is not None:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        return None
                    wait = remaining if wait is None else min(wait, remaining)
                self._cond.wait(wait)
            return None

    def holds_lease(self, lease: Lease) -> bool:
        """True while ``lease`` is still the active claim on its job."""
        with self._cond:
            current = self._leases.get(lease.job_id)
            return current is not None and current.token == lease.token

    def ack(self, lease: Lease) -> bool:
        """Release a finished job.

        Returns:
            False if the lease was lost (expired and reaped or re-claimed).
        """
        with self._cond:
            current = self._leases.get(lease.job_id)
            if current is None or current.token != lease.token:
                logger.warning(
                    "ack_lease_lost", job_id=lease.job_id, worker_id=lease.worker_id
                )
                return False
            del self._leases[lease.job_id]
            return True

    def requeue(self, lease: Lease, next_eligible_at: Optional[datetime]) -> bool:
        """Release a leased job for another attempt at ``next_eligible_at``.

        Retries bypass capacity so an accepted job is never dropped.

        Returns:
            False if the lease was lost.
        """
        with self._cond:
            current = self._leases.get(lease.job_id)
            if current is None or current.token != lease.token:
                logger.warning(
                    "requeue_lease_lost",
                    job_id=lease.job_id,
                    worker_id=lease.worker_id,
                )
                return False
            del self._leases[lease.job_id]
            job = lease.job
            job.next_eligible_at = next_eligible_at
            self._place(job, self._clock())
            self._cond.notify()
            return True

    def reap_expired_leases(
        self,
        now: Optional[datetime] = None,
        on_reap: Optional[Callable[[Job], None]] = None,
    ) -> List[Job]:
        """Return jobs whose lease expired to the head of their ready queue.

        A job whose next_eligible_at is still in the future (set by on_reap
        for a retry that was recorded but not yet requeued) waits in the
        delay heap instead.

        Args:
            now: Reference time, defaults to the queue clock
            on_reap: Called for each job before it becomes claimable again

        Returns:
            The reaped jobs.
        """
        with self._cond:
            now = now or self._clock()
            expired = [
                lease for lease in self._leases.values() if lease.expires_at <= now
            ]
            for lease in expired:
                del self._leases[lease.job_id]
                if on_reap is not None:
                    on_reap(lease.job)
                if lease.job.is_eligible(now):
                    self._push_ready(lease.job, front=True)
                else:
                    self._push_delayed(lease.job)
                logger.warning(
                    "lease_expired_job_returned",
                    job_id=lease.job_id,
                    worker_id=lease.worker_id,
                )
            if expired:
                self._cond.notify_all()
            return [lease.job for lease in expired]

    def is_leased(self, job_id: str) -> bool:
        with self._cond:
            return job_id in self._leases

    def remove(self, job_id: str) -> Optional[Job]:
        """Remove a job that no worker has claimed (cancellation).

        Returns:
            The removed job, or None if it is leased or unknown.
        """
        with self._cond:
            priority = self._ready_ids.pop(job_id, None)
            if priority is not None:
                queue = self._ready[priority]
                for job in queue:
                    if job.job_id == job_id:
                        queue.remove(job)
                        return job

            entry = self._delayed_jobs.pop(job_id, None)
            if entry is not None:
                job = entry[1]
                self._delayed_counts[job.priority] -= 1
                return job
            return None

    def close(self) -> None:
        """Wake every blocked dequeue; later dequeues return None."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def stats(self) -> dict:
        with self._cond:
            return {
                "high_ready": len(self._ready[Priority.HIGH]),
                "low_ready": len(self._ready[Priority.LOW]),
                "high_delayed": self._delayed_counts[Priority.HIGH],
                "low_delayed": self._delayed_counts[Priority.LOW],
                "leased": len(self._leases),
                "high_capacity": self.capacities[Priority.HIGH],
                "low_capacity": self.capacities[Priority.LOW],
            }
