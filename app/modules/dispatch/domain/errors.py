"""Errors for the dispatch module.

Caller-facing errors derive from DispatchError and carry a stable
``error_code`` and the HTTP status the API maps them to.
"""

from typing import Optional


class DispatchError(Exception):
    """Base class for dispatch errors surfaced to callers.

    Attributes:
        message: human-friendly message
        error_code: stable machine code returned by the API
        http_status: HTTP status the API responds with
    """

    error_code = "DISPATCH_ERROR"
    http_status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequest(DispatchError):
    """The submission is malformed (blank caller, oversized payload)."""

    error_code = "INVALID_REQUEST"
    http_status = 400


class MissingIdempotencyKey(DispatchError):
    error_code = "MISSING_IDEMPOTENCY_KEY"
    http_status = 400


class IdempotencyKeyReuseError(DispatchError):
    """The key was already used with a different request body."""

    error_code = "IDEMPOTENCY_KEY_REUSED"
    http_status = 400


class IdempotencyConflict(DispatchError):
    """Another submission with the same key is still being accepted."""

    error_code = "IDEMPOTENCY_CONFLICT"
    http_status = 409


class QueueSaturated(DispatchError):
    """The target queue is at capacity; the caller should back off.

    Attributes:
        priority: saturated queue name
        retry_after: suggested seconds before retrying
    """

    error_code = "QUEUE_SATURATED"
    http_status = 429

    def __init__(self, message: str, priority: str = "", retry_after: int = 1):
        super().__init__(message)
        self.priority = priority
        self.retry_after = retry_after


class LedgerUnavailable(DispatchError):
    """The idempotency ledger or status store could not be reached."""

    error_code = "LEDGER_UNAVAILABLE"
    http_status = 503


class JobNotFound(DispatchError):
    error_code = "JOB_NOT_FOUND"
    http_status = 404


class JobNotCancellable(DispatchError):
    """The job was already claimed by a worker or has finished."""

    error_code = "JOB_NOT_CANCELLABLE"
    http_status = 409


class InvalidStatusTransition(DispatchError):
    """A status change not allowed by the lifecycle table."""

    error_code = "INVALID_STATUS_TRANSITION"
    http_status = 409

    def __init__(
        self,
        job_id: str,
        current: Optional[str] = None,
        target: Optional[str] = None,
    ):
        super().__init__(f"Job {job_id}: cannot move from {current} to {target}")
        self.job_id = job_id
        self.current = current
        self.target = target
