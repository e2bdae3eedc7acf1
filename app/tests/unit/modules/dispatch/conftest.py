"""Fixtures for dispatch component tests (Level 2)."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from infrastructure.idempotency import InMemoryIdempotencyLedger, IdempotencyRecord
from infrastructure.resilience import RetryConfig
from modules.dispatch.dead_letter import InMemoryDeadLetterStore
from modules.dispatch.queues import PriorityQueuePair
from modules.dispatch.resolver import PayloadResolver
from modules.dispatch.retry_controller import RetryController
from modules.dispatch.status_ledger import InMemoryStatusLedger
from modules.dispatch.worker import DispatchWorker


@pytest.fixture
def retry_config():
    """Deterministic policy: 1s, 2s, 4s... with no jitter, no write retries."""
    return RetryConfig(
        max_attempts=3,
        base_delay_seconds=1,
        max_delay_seconds=60,
        jitter_ratio=0,
        status_write_attempts=1,
    )


@pytest.fixture
def queues(fake_clock):
    return PriorityQueuePair(
        capacity_high=10, capacity_low=10, lease_seconds=60, clock=fake_clock
    )


@pytest.fixture
def status_ledger(fake_clock):
    return InMemoryStatusLedger(clock=fake_clock)


@pytest.fixture
def dead_letters():
    return InMemoryDeadLetterStore()


@pytest.fixture
def idempotency_ledger():
    return InMemoryIdempotencyLedger()


@pytest.fixture
def retry_controller(
    queues, status_ledger, dead_letters, idempotency_ledger, retry_config, fake_clock
):
    return RetryController(
        queues=queues,
        status_ledger=status_ledger,
        dead_letters=dead_letters,
        idempotency_ledger=idempotency_ledger,
        config=retry_config,
        clock=fake_clock,
        rng=lambda: 0.5,
        sleep=lambda seconds: None,
    )


@pytest.fixture
def executors():
    pools = {
        channel: ThreadPoolExecutor(max_workers=2, thread_name_prefix=f"test-{channel}")
        for channel in ("email", "sms", "push")
    }
    yield pools
    for pool in pools.values():
        pool.shutdown(wait=False, cancel_futures=True)


@pytest.fixture
def accept_job(queues, status_ledger, idempotency_ledger, job_factory):
    """Factory placing a job the way the gateway does: ledger, status, queue."""

    def _accept(**kwargs):
        job = job_factory(**kwargs)
        idempotency_ledger.create_if_absent(
            IdempotencyRecord.new_pending(
                job.caller_id, job.idempotency_key, "hash", ttl_seconds=3600
            ),
            lock_timeout_seconds=30,
        )
        status_ledger.create(job, retention_seconds=3600)
        queues.enqueue(job)
        return job

    return _accept


@pytest.fixture
def worker_factory(
    queues,
    status_ledger,
    retry_controller,
    idempotency_ledger,
    executors,
    retry_config,
    fake_clock,
):
    """Factory for a DispatchWorker over the shared fixtures."""

    def _factory(adapters, timeouts=None, worker_id="worker-1", executors=executors):
        return DispatchWorker(
            worker_id=worker_id,
            queues=queues,
            status_ledger=status_ledger,
            retry_controller=retry_controller,
            adapters=adapters,
            resolver=PayloadResolver(),
            idempotency_ledger=idempotency_ledger,
            executors=executors,
            timeouts=timeouts or {"email": 2, "sms": 2, "push": 2},
            retry_config=retry_config,
            poll_interval=0.01,
            clock=fake_clock,
        )

    return _factory
