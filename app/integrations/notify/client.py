"""Minimal GC Notify REST client.

GC Notify authenticates each request with a short-lived HS256 JWT whose
issuer is the service id and which carries the issue time in epoch seconds.
"""

import calendar
import time
from typing import Any, Dict, Optional

import jwt
import requests

from infrastructure.logging import get_module_logger

logger = get_module_logger()


class NotifyCredentialsError(ValueError):
    """The service id or API secret is missing."""


def build_jwt(service_id: str, secret: str, issued_at: Optional[int] = None) -> str:
    if issued_at is None:
        issued_at = calendar.timegm(time.gmtime())
    return jwt.encode(
        payload={"iss": service_id, "iat": issued_at},
        key=secret,
        headers={"typ": "JWT", "alg": "HS256"},
    )


def auth_headers(service_id: Optional[str], secret: Optional[str]) -> Dict[str, str]:
    """Request headers for one GC Notify call.

    Raises:
        NotifyCredentialsError: NOTIFY_SERVICE_ID or NOTIFY_API_SECRET is unset.
    """
    missing = [
        name
        for name, value in (
            ("NOTIFY_SERVICE_ID", service_id),
            ("NOTIFY_API_SECRET", secret),
        )
        if not value
    ]
    if missing:
        logger.error("notify_credentials_missing", missing=missing)
        raise NotifyCredentialsError(f"{', '.join(missing)} is missing")

    return {
        "Authorization": f"Bearer {build_jwt(service_id, secret)}",
        "Content-Type": "application/json",
    }


def post_notification(
    url: str,
    payload: Dict[str, Any],
    service_id: Optional[str],
    secret: Optional[str],
    timeout: float = 30,
) -> requests.Response:
    """POST one notification; the caller classifies the response.

    Raises:
        NotifyCredentialsError: Credentials are missing; nothing was sent.
        requests.RequestException: Network failure or timeout.
    """
    return requests.post(
        url, json=payload, headers=auth_headers(service_id, secret), timeout=timeout
    )
