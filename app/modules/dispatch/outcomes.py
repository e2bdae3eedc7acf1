"""Persisting delivery outcomes.

Workers and the retry controller write every send outcome twice: to the
status ledger (authoritative) and to the idempotency ledger (so a repeat
submission replays the final response). Both writes retry with backoff.
"""

import time
from typing import Any, Callable, Dict, TypeVar

from infrastructure.idempotency import (
    IdempotencyLedger,
    IdempotencyLedgerError,
    IdempotencyStatus,
)
from infrastructure.logging import get_module_logger
from infrastructure.resilience import RetryConfig, call_with_retry
from modules.dispatch.domain import Job
from modules.dispatch.status_ledger import StatusLedgerError

logger = get_module_logger()

T = TypeVar("T")


def persist_status(
    func: Callable[[], T],
    config: RetryConfig,
    operation: str,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run a status ledger write, retrying backend failures.

    Lifecycle violations (JobNotFound, InvalidStatusTransition) are not
    retried and propagate immediately.
    """
    return call_with_retry(
        func,
        attempts=config.status_write_attempts,
        retry_on=(StatusLedgerError,),
        operation=operation,
        sleep=sleep,
    )


def store_final_response(
    ledger: IdempotencyLedger,
    job: Job,
    status: IdempotencyStatus,
    body: Dict[str, Any],
    config: RetryConfig,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """Finalize the idempotency record for a job with its response body.

    Returns:
        False if the write failed after retries. The status ledger still
        holds the outcome, so the failure is logged rather than raised.
    """
    try:
        call_with_retry(
            lambda: ledger.update(job.caller_id, job.idempotency_key, status, body),
            attempts=config.status_write_attempts,
            retry_on=(IdempotencyLedgerError,),
            operation="idempotency_finalize",
            sleep=sleep,
        )
    except IdempotencyLedgerError as e:
        logger.error(
            "idempotency_finalize_failed",
            job_id=job.job_id,
            caller_id=job.caller_id,
            status=status.value,
            body=body,
            error=str(e),
        )
        return False
    return True
