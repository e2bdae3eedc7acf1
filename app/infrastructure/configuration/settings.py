"""Top-level settings object for the dispatch service."""

from typing import Any, Dict, Type

from pydantic_settings import BaseSettings, SettingsConfigDict

from infrastructure.configuration.features import DispatchSettings
from infrastructure.configuration.infrastructure import (
    IdempotencySettings,
    RetrySettings,
)
from infrastructure.configuration.integrations import (
    AwsSettings,
    NotifySettings,
    PushSettings,
)

SECTIONS: Dict[str, Type[BaseSettings]] = {
    "dispatch": DispatchSettings,
    "retry": RetrySettings,
    "idempotency": IdempotencySettings,
    "notify": NotifySettings,
    "push": PushSettings,
    "aws": AwsSettings,
}


class Settings(BaseSettings):
    """All service configuration, grouped by section.

    Every section reads its own environment variables. Passing a section
    instance as a keyword argument replaces the environment-loaded one.

    Environment Variables:
        PREFIX: Environment prefix; empty in production
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        GIT_SHA: Deployed commit, reported by /version
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    PREFIX: str = ""
    LOG_LEVEL: str = "INFO"
    GIT_SHA: str = "Unknown"

    dispatch: DispatchSettings
    retry: RetrySettings
    idempotency: IdempotencySettings
    notify: NotifySettings
    push: PushSettings
    aws: AwsSettings

    def __init__(self, **kwargs: Any):
        for name, section in SECTIONS.items():
            if name not in kwargs:
                kwargs[name] = section()
        super().__init__(**kwargs)

    @property
    def is_production(self) -> bool:
        return not self.PREFIX

    def summary(self) -> Dict[str, Any]:
        """Secret-free view of the configuration for the startup log."""
        return {
            "environment": self.PREFIX or "production",
            "workers": self.dispatch.worker_count,
            "queue_capacity": {
                "high": self.dispatch.queue_capacity_high,
                "low": self.dispatch.queue_capacity_low,
            },
            "lease_seconds": self.dispatch.lease_seconds,
            "retry": {
                "max_attempts": self.retry.max_attempts,
                "base_delay_seconds": self.retry.base_delay_seconds,
                "max_delay_seconds": self.retry.max_delay_seconds,
            },
            "idempotency_backend": self.idempotency.IDEMPOTENCY_BACKEND,
            "providers": {
                "notify": self.notify.is_configured,
                "push": self.push.is_configured,
            },
        }
