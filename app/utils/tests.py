"""Helpers shared by the API tests."""

from typing import Any, Optional

import httpx
from fastapi import FastAPI

from api.dependencies.rate_limits import setup_rate_limiter

RATE_LIMITED_BODY = {"error_code": "RATE_LIMITED", "message": "Rate limit exceeded"}


def create_test_app(routers, dispatch_service=None) -> FastAPI:
    """Build an app with rate limiting and the given router(s), without a lifespan.

    Args:
        routers: A router or list of routers to include.
        dispatch_service: Exposed on app.state the way the lifespan does it.
    """
    app = FastAPI()
    setup_rate_limiter(app)

    for router in routers if isinstance(routers, list) else [routers]:
        app.include_router(router)

    if dispatch_service is not None:
        app.state.dispatch_service = dispatch_service
    return app


async def rate_limiting_helper(
    app: FastAPI,
    endpoint: str,
    request_limit: int,
    method: str = "get",
    expected_status: int = 200,
    headers: Optional[dict] = None,
    **request_kwargs: Any,
) -> None:
    """Spend the whole budget for endpoint, then expect one RATE_LIMITED 429.

    Extra keyword arguments (for example ``json=``) go to every request.
    """
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        send = getattr(client, method.lower())

        for attempt in range(1, request_limit + 1):
            response = await send(endpoint, headers=headers or {}, **request_kwargs)
            assert (
                response.status_code == expected_status
            ), f"Request {attempt} returned {response.status_code}"

        response = await send(endpoint, headers=headers or {}, **request_kwargs)
        assert response.status_code == 429
        assert response.json() == RATE_LIMITED_BODY
