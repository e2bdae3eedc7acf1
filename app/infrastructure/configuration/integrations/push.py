"""Push gateway integration settings."""

from pydantic import Field

from infrastructure.configuration.base import SectionSettings


class PushSettings(SectionSettings):
    """HTTP push gateway configuration.

    Environment Variables:
        PUSH_API_URL: Push gateway base URL
        PUSH_API_TOKEN: Bearer token for the push gateway
    """

    PUSH_API_URL: str = Field(default="", alias="PUSH_API_URL")
    PUSH_API_TOKEN: str | None = Field(default=None, alias="PUSH_API_TOKEN")

    @property
    def is_configured(self) -> bool:
        return bool(self.PUSH_API_URL and self.PUSH_API_TOKEN)
