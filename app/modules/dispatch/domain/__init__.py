"""Domain layer - data models and errors."""

from modules.dispatch.domain.errors import (
    DispatchError,
    IdempotencyConflict,
    IdempotencyKeyReuseError,
    InvalidRequest,
    InvalidStatusTransition,
    JobNotCancellable,
    JobNotFound,
    LedgerUnavailable,
    MissingIdempotencyKey,
    QueueSaturated,
)
from modules.dispatch.domain.models import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    AttemptRecord,
    DeadLetterEntry,
    DeadLetterReason,
    DeliveryStatus,
    DeliveryStatusRecord,
    Job,
    NotificationRequest,
    Priority,
    SubmissionResult,
    can_transition,
    utcnow,
)

__all__ = [
    # Errors
    "DispatchError",
    "IdempotencyConflict",
    "IdempotencyKeyReuseError",
    "InvalidRequest",
    "InvalidStatusTransition",
    "JobNotCancellable",
    "JobNotFound",
    "LedgerUnavailable",
    "MissingIdempotencyKey",
    "QueueSaturated",
    # Models
    "ALLOWED_TRANSITIONS",
    "TERMINAL_STATUSES",
    "AttemptRecord",
    "DeadLetterEntry",
    "DeadLetterReason",
    "DeliveryStatus",
    "DeliveryStatusRecord",
    "Job",
    "NotificationRequest",
    "Priority",
    "SubmissionResult",
    "can_transition",
    "utcnow",
]
