"""Idempotency infrastructure settings."""

from typing import Literal

from pydantic import Field

from infrastructure.configuration.base import SectionSettings


class IdempotencySettings(SectionSettings):
    """Idempotency ledger configuration for deduplicating submissions.

    Environment Variables:
        IDEMPOTENCY_TTL_SECONDS: Lifetime of an idempotency record (default: 86400s = 24h)
        IDEMPOTENCY_LOCK_TIMEOUT_SECONDS: Age after which a pending record with no
            stored response is considered abandoned (default: 30s)
        IDEMPOTENCY_BACKEND: Ledger backend - 'memory' or 'dynamodb' (default: memory)
        IDEMPOTENCY_TABLE_NAME: DynamoDB table name (default: dispatch_idempotency)

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()

        ttl = settings.idempotency.IDEMPOTENCY_TTL_SECONDS
        ```
    """

    IDEMPOTENCY_TTL_SECONDS: int = Field(
        default=86400, alias="IDEMPOTENCY_TTL_SECONDS", ge=1
    )
    IDEMPOTENCY_LOCK_TIMEOUT_SECONDS: int = Field(
        default=30, alias="IDEMPOTENCY_LOCK_TIMEOUT_SECONDS", ge=1
    )
    IDEMPOTENCY_BACKEND: Literal["memory", "dynamodb"] = Field(
        default="memory", alias="IDEMPOTENCY_BACKEND"
    )
    IDEMPOTENCY_TABLE_NAME: str = Field(
        default="dispatch_idempotency", alias="IDEMPOTENCY_TABLE_NAME"
    )
