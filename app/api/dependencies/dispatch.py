"""FastAPI dependencies for the dispatch service."""

from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, Request

from modules.dispatch import DispatchService


def get_dispatch_service(request: Request) -> DispatchService:
    """Return the DispatchService created by the application lifespan."""
    service = getattr(request.app.state, "dispatch_service", None)
    if service is None:
        raise HTTPException(
            status_code=503,
            detail={
                "error_code": "SERVICE_UNAVAILABLE",
                "message": "Dispatch service is not running",
            },
        )
    return service


def get_caller_id(
    x_caller_id: Annotated[Optional[str], Header(alias="X-Caller-ID")] = None,
) -> str:
    """Identify the submitting caller; idempotency keys are scoped per caller."""
    if not x_caller_id or not x_caller_id.strip():
        raise HTTPException(
            status_code=400,
            detail={
                "error_code": "MISSING_CALLER_ID",
                "message": "X-Caller-ID header is required",
            },
        )
    return x_caller_id.strip()


DispatchServiceDep = Annotated[DispatchService, Depends(get_dispatch_service)]
CallerIdDep = Annotated[str, Depends(get_caller_id)]
