"""FastAPI dependencies for DI."""

from functools import lru_cache

from supportbot.core.config import AppConfig, get_config
from supportbot.core.di_container import DIContainer
from supportbot.core.di_container import container as di_container


@lru_cache
def get_cached_config() -> AppConfig:
    """Get cached application config."""
    return get_config()


def get_container() -> DIContainer:
    """Get the global DI container (tests override its providers)."""
    return di_container
