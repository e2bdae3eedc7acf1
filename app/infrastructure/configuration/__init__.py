"""Service configuration, loaded with pydantic-settings.

Use the cached instance rather than building Settings directly::

    from infrastructure.services import get_settings

    settings = get_settings()
    settings.dispatch.worker_count
"""

from infrastructure.configuration.settings import Settings
from infrastructure.configuration.features import DispatchSettings
from infrastructure.configuration.infrastructure import (
    IdempotencySettings,
    RetrySettings,
)

__all__ = ["Settings", "DispatchSettings", "IdempotencySettings", "RetrySettings"]
