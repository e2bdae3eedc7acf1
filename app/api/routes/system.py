from fastapi import APIRouter, Request

from api.dependencies.dispatch import DispatchServiceDep
from api.dependencies.rate_limits import HEALTH_RATE_LIMIT, get_limiter
from infrastructure.services import SettingsDep

router = APIRouter(tags=["System"])
limiter = get_limiter()


@router.get("/version")
@limiter.limit(HEALTH_RATE_LIMIT)
def get_version(request: Request, settings: SettingsDep):  # pylint: disable=unused-argument
    """Get the version of the application."""
    return {"version": settings.GIT_SHA}


# Load balancer health checks hit this every few seconds
@router.get("/health")
@limiter.limit(HEALTH_RATE_LIMIT)
def get_health(request: Request, service: DispatchServiceDep):  # pylint: disable=unused-argument
    """Healthcheck endpoint with the status of each configured channel."""
    channels = {
        name: result.as_health() for name, result in service.health_check().items()
    }
    return {
        "status": "ok" if service.is_running else "degraded",
        "channels": channels,
    }
