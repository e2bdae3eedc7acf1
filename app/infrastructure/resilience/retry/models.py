"""Retry outcome model."""

from enum import Enum


class RetryResult(Enum):
    """Outcome of one delivery attempt as seen by the retry controller.

    Values:
        SUCCESS: Delivered, job is finished
        RETRY: Retryable failure, job re-enqueued after a backoff delay
        PERMANENT_FAILURE: Job moved to the dead-letter store
    """

    SUCCESS = "success"
    RETRY = "retry"
    PERMANENT_FAILURE = "permanent_failure"
