"""
Factory functions for process-edge singletons.

Only the bootstrap and logging setup read settings through here; the engine
itself receives its configuration through constructors.
"""

from functools import lru_cache

from chatbot.infrastructure.configuration import Settings


@lru_cache
def get_settings() -> Settings:
    """
    Get application-scoped settings singleton.

    The @lru_cache decorator ensures only ONE instance is created per process.

    Returns:
        Settings: Cached settings instance loaded from environment.
    """
    return Settings()
