from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

# Per caller (X-Caller-ID) or, without one, per client address
SUBMISSION_RATE_LIMIT = "600/minute"
READ_RATE_LIMIT = "1200/minute"
HEALTH_RATE_LIMIT = "50/minute"


def caller_key_func(request: Request) -> str:
    caller_id = (request.headers.get("X-Caller-ID") or "").strip()
    if caller_id:
        return f"caller:{caller_id}"
    return get_remote_address(request)


limiter = Limiter(key_func=caller_key_func)


async def rate_limit_handler(_request: Request, exc: Exception):
    """Render slowapi's RateLimitExceeded in the API's error shape."""
    if isinstance(exc, RateLimitExceeded):
        return JSONResponse(
            status_code=429,
            content={"error_code": "RATE_LIMITED", "message": "Rate limit exceeded"},
        )


def setup_rate_limiter(app: FastAPI) -> None:
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)


def get_limiter() -> Limiter:
    return limiter
