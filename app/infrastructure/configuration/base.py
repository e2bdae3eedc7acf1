from pydantic_settings import BaseSettings, SettingsConfigDict


class SectionSettings(BaseSettings):
    """One group of environment variables, read from the process env and .env.

    Names are case sensitive. Unknown variables are ignored so every section
    can share a single .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )
