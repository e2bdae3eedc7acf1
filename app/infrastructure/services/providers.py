from functools import lru_cache

from infrastructure.configuration import Settings


@lru_cache
def get_settings() -> Settings:
    """Process-wide Settings, read from the environment on first use.

    Tests call ``get_settings.cache_clear()`` to pick up a changed environment.
    """
    return Settings()
