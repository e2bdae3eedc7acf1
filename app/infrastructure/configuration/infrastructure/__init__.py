from infrastructure.configuration.infrastructure.idempotency import IdempotencySettings
from infrastructure.configuration.infrastructure.retry import RetrySettings

__all__ = [
    "IdempotencySettings",
    "RetrySettings",
]
