import functools
import threading
from typing import TYPE_CHECKING

import schedule

from infrastructure.logging import get_module_logger

if TYPE_CHECKING:
    from modules.dispatch import DispatchService

logger = get_module_logger()

JOB_TAG = "dispatch-maintenance"
HEARTBEAT_MINUTES = 5


def safe_run(job):
    """Log a failing job instead of letting it stop the scheduler thread."""

    @functools.wraps(job)
    def wrapper(*args, **kwargs):
        try:
            return job(*args, **kwargs)
        except Exception as e:
            logger.error("scheduled_job_failed", job=job.__name__, error=str(e))

    return wrapper


def reap_expired_leases(service: "DispatchService") -> int:
    count = service.reap_expired_leases()
    if count:
        logger.info("maintenance_leases_reaped", count=count)
    return count


def purge_idempotency_records(service: "DispatchService") -> int:
    count = service.purge_idempotency_records()
    if count:
        logger.info("maintenance_idempotency_purged", count=count)
    return count


def purge_status_records(service: "DispatchService") -> int:
    count = service.purge_status_records()
    if count:
        logger.info("maintenance_status_purged", count=count)
    return count


def scheduler_heartbeat(service: "DispatchService") -> None:
    logger.info("scheduler_heartbeat", queues=service.queues.stats())


MAINTENANCE_TASKS = (reap_expired_leases, purge_idempotency_records, purge_status_records)


def init(service: "DispatchService", interval_seconds: int = 30) -> None:
    """Register the maintenance jobs for service on the default scheduler."""
    for task in MAINTENANCE_TASKS:
        schedule.every(interval_seconds).seconds.do(
            safe_run(task), service=service
        ).tag(JOB_TAG)
    schedule.every(HEARTBEAT_MINUTES).minutes.do(
        safe_run(scheduler_heartbeat), service=service
    ).tag(JOB_TAG)
    logger.info(
        "scheduled_tasks_initialized",
        interval_seconds=interval_seconds,
        tasks=[task.__name__ for task in MAINTENANCE_TASKS],
    )


def clear() -> None:
    schedule.clear(JOB_TAG)


def run_continuously(interval: float = 1) -> threading.Event:
    """Run pending jobs on a daemon thread until the returned event is set.

    Missed runs are not replayed: a job that fell due several times while the
    thread waited runs once.
    """
    stop = threading.Event()

    def loop():
        while not stop.is_set():
            schedule.run_pending()
            stop.wait(interval)

    threading.Thread(target=loop, name="dispatch-scheduler", daemon=True).start()
    return stop
