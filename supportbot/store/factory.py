"""Factory for creating key-value store instances."""

from supportbot.core.config import StoreConfig
from supportbot.core.exceptions import ConfigurationError
from supportbot.core.protocols import KeyValueStore


class KeyValueStoreFactory:
    """Factory for creating key-value store instances using registry pattern."""

    _registry: dict[str, type[KeyValueStore]] = {}

    @classmethod
    def register(cls, backend: str):
        """Decorator to register a store implementation.

        Usage:
            @KeyValueStoreFactory.register("redis")
            class RedisKeyValueStore:
                ...
        """

        def decorator(store_cls: type) -> type:
            cls._registry[backend] = store_cls
            return store_cls

        return decorator

    @classmethod
    def create(cls, config: StoreConfig) -> KeyValueStore:
        """Create a store from configuration.

        Args:
            config: Store configuration

        Returns:
            KeyValueStore instance

        Raises:
            ConfigurationError: If backend is not registered
        """
        store_cls = cls._registry.get(config.backend)
        if store_cls is None:
            raise ConfigurationError(
                f"Unknown store backend: {config.backend}. Available: {list(cls._registry.keys())}"
            )

        if config.backend == "redis":
            return store_cls(config.redis_url)
        return store_cls()

    @classmethod
    def available_backends(cls) -> list[str]:
        """Get list of available backend names."""
        return list(cls._registry.keys())
