from typing import Annotated, Optional

from fastapi import APIRouter, Header, HTTPException, Query, Request

from api.dependencies.dispatch import CallerIdDep, DispatchServiceDep
from api.dependencies.rate_limits import (
    READ_RATE_LIMIT,
    SUBMISSION_RATE_LIMIT,
    get_limiter,
)
from infrastructure.logging import get_module_logger
from modules.dispatch.domain import DispatchError, QueueSaturated
from modules.dispatch.schemas import (
    DeadLetterListResponse,
    DeadLetterResponse,
    JobStatusResponse,
    SubmissionResponse,
    SubmitNotificationRequest,
)

logger = get_module_logger()

router = APIRouter(tags=["Notifications"])
limiter = get_limiter()


def to_http_exception(error: DispatchError) -> HTTPException:
    """Map a caller-facing dispatch error onto an HTTP response."""
    headers = None
    if isinstance(error, QueueSaturated):
        headers = {"Retry-After": str(error.retry_after)}
    return HTTPException(
        status_code=error.http_status,
        detail={"error_code": error.error_code, "message": error.message},
        headers=headers,
    )


@router.post("/notifications", status_code=202, response_model=SubmissionResponse)
@limiter.limit(SUBMISSION_RATE_LIMIT)
def submit_notification(
    request: Request,  # pylint: disable=unused-argument
    body: SubmitNotificationRequest,
    service: DispatchServiceDep,
    caller_id: CallerIdDep,
    idempotency_key: Annotated[Optional[str], Header(alias="Idempotency-Key")] = None,
):
    """Submit a notification for delivery.

    Submitting the same request again with the same idempotency key returns
    the stored response (``replayed: true``) and never creates a second job.
    """
    try:
        result = service.submit(caller_id, body.to_domain(idempotency_key))
    except DispatchError as e:
        logger.info(
            "submission_rejected",
            caller_id=caller_id,
            error_code=e.error_code,
            status_code=e.http_status,
        )
        raise to_http_exception(e) from e
    return SubmissionResponse.from_result(result)


@router.get("/notifications/{job_id}", response_model=JobStatusResponse)
@limiter.limit(READ_RATE_LIMIT)
def get_notification_status(
    request: Request,  # pylint: disable=unused-argument
    job_id: str,
    service: DispatchServiceDep,
):
    """Get the delivery status and attempt history of a job."""
    try:
        record = service.get_status(job_id)
    except DispatchError as e:
        raise to_http_exception(e) from e
    return JobStatusResponse.from_record(record)


@router.delete("/notifications/{job_id}", response_model=JobStatusResponse)
@limiter.limit(SUBMISSION_RATE_LIMIT)
def cancel_notification(
    request: Request,  # pylint: disable=unused-argument
    job_id: str,
    service: DispatchServiceDep,
):
    """Cancel a job that has not been claimed by a worker yet."""
    try:
        record = service.cancel(job_id)
    except DispatchError as e:
        raise to_http_exception(e) from e
    return JobStatusResponse.from_record(record)


@router.get("/dead-letters", response_model=DeadLetterListResponse)
@limiter.limit(READ_RATE_LIMIT)
def list_dead_letters(
    request: Request,  # pylint: disable=unused-argument
    service: DispatchServiceDep,
    limit: Annotated[int, Query(ge=1, le=500)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
):
    """List dead-lettered jobs for operator review."""
    entries = service.list_dead_letters(limit=limit, offset=offset)
    return DeadLetterListResponse(
        total=service.dead_letters.count(),
        entries=[DeadLetterResponse.from_entry(e) for e in entries],
    )


@router.get("/dispatch/stats")
@limiter.limit(READ_RATE_LIMIT)
def get_dispatch_stats(
    request: Request,  # pylint: disable=unused-argument
    service: DispatchServiceDep,
):
    """Queue depths, status counts and store statistics."""
    return service.get_stats()
