from integrations.notify.client import (
    NotifyCredentialsError,
    auth_headers,
    build_jwt,
    post_notification,
)

__all__ = [
    "NotifyCredentialsError",
    "auth_headers",
    "build_jwt",
    "post_notification",
]
