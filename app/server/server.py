from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from api.dependencies.rate_limits import setup_rate_limiter
from api.router import api_router
from infrastructure.logging import bind_request_context
from infrastructure.services import get_settings
from server.lifespan import lifespan

CORRELATION_HEADER = "X-Correlation-ID"

settings = get_settings()

handler = FastAPI(
    title="Notification Dispatch",
    version=settings.GIT_SHA,
    lifespan=lifespan,
)
setup_rate_limiter(handler)


@handler.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    """Tag every log line of a request with one correlation id and echo it back."""
    with bind_request_context(
        correlation_id=request.headers.get(CORRELATION_HEADER),
        caller_id=request.headers.get("X-Caller-ID"),
        request_path=request.url.path,
        request_method=request.method,
    ) as correlation_id:
        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response


LOCAL_ORIGINS = ["http://localhost:8000", "http://127.0.0.1:8000"]


def cors_origins(app_settings) -> list:
    """Browser origins allowed to call the API.

    Callers are services, so production allows none; local tooling may call
    from localhost during development.
    """
    return [] if app_settings.is_production else list(LOCAL_ORIGINS)


handler.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(settings),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

handler.include_router(api_router)
