"""Relevance ranker factory with decorator-based registration."""

from supportbot.core.config import AppConfig
from supportbot.core.exceptions import ConfigurationError
from supportbot.core.protocols import EmbeddingProvider, KeyValueStore, RelevanceRanker


class RankerFactory:
    """Registry of retrieval strategies selected by RANKING_STRATEGY.

    To add a strategy, decorate its class with @RankerFactory.register("name").
    """

    _registry: dict[str, type] = {}

    @classmethod
    def register(cls, name: str):
        """Decorator to register a ranker class."""

        def decorator(ranker_cls: type) -> type:
            cls._registry[name] = ranker_cls
            return ranker_cls

        return decorator

    @classmethod
    def create(
        cls,
        config: AppConfig,
        store: KeyValueStore | None = None,
        embedder: EmbeddingProvider | None = None,
    ) -> RelevanceRanker:
        """Create the configured ranker.

        Raises:
            ConfigurationError: If the strategy is unknown or misses a collaborator
        """
        strategy = config.ranking.strategy
        ranker_cls = cls._registry.get(strategy)
        if ranker_cls is None:
            available = ", ".join(cls._registry.keys()) or "none registered"
            raise ConfigurationError(f"Unknown ranking strategy: '{strategy}'. Available: {available}")

        if strategy == "embedding":
            if store is None or embedder is None:
                raise ConfigurationError("Embedding ranking requires a key-value store and an embedder")
            return ranker_cls(config.ranking, store=store, embedder=embedder)
        return ranker_cls(config.ranking)

    @classmethod
    def available_strategies(cls) -> list[str]:
        """List all registered strategies."""
        return list(cls._registry.keys())
