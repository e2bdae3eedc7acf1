"""GC Notify integration settings."""

from typing import Dict

from pydantic import Field

from infrastructure.configuration.base import SectionSettings


class NotifySettings(SectionSettings):
    """GC Notify API configuration used by the email and SMS channels.

    Environment Variables:
        NOTIFY_API_URL: GC Notify API endpoint URL
        NOTIFY_SERVICE_ID: GC Notify service identifier (JWT issuer)
        NOTIFY_API_SECRET: GC Notify API signing secret
        NOTIFY_EMAIL_TEMPLATE_ID: Default template for email notifications
        NOTIFY_SMS_TEMPLATE_ID: Default template for SMS notifications
        NOTIFY_TEMPLATE_IDS: JSON object mapping request template names to
            GC Notify template ids

    Example:
        ```python
        from infrastructure.services import get_settings

        settings = get_settings()

        api_url = settings.notify.NOTIFY_API_URL
        ```
    """

    NOTIFY_API_URL: str = Field(default="", alias="NOTIFY_API_URL")
    NOTIFY_SERVICE_ID: str | None = Field(default=None, alias="NOTIFY_SERVICE_ID")
    NOTIFY_API_SECRET: str | None = Field(default=None, alias="NOTIFY_API_SECRET")
    NOTIFY_EMAIL_TEMPLATE_ID: str = Field(default="", alias="NOTIFY_EMAIL_TEMPLATE_ID")
    NOTIFY_SMS_TEMPLATE_ID: str = Field(default="", alias="NOTIFY_SMS_TEMPLATE_ID")
    NOTIFY_TEMPLATE_IDS: Dict[str, str] = Field(
        default_factory=dict, alias="NOTIFY_TEMPLATE_IDS"
    )

    @property
    def is_configured(self) -> bool:
        """True when the API URL and credentials are all present."""
        return bool(
            self.NOTIFY_API_URL and self.NOTIFY_SERVICE_ID and self.NOTIFY_API_SECRET
        )
