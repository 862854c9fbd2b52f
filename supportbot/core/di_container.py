"""Dependency Injector based DI Container."""

from dependency_injector import containers, providers

from supportbot.core.config import get_config

# --- Factory Functions (defined before class to avoid NameError) ---

def _create_store(config):
    """Create backing key-value store."""
    from supportbot.store.factory import KeyValueStoreFactory
    return KeyValueStoreFactory.create(config)


def _create_llm(config):
    """Create AI completion provider."""
    from supportbot.llm.factory import LLMFactory
    return LLMFactory.create(config)


def _create_fetcher(config):
    """Create help-center page fetcher."""
    from supportbot.content.fetcher import HttpFetcher
    return HttpFetcher(config)


def _create_content_cache(config, fetcher):
    """Create content cache."""
    from supportbot.content.cache import ContentCache
    return ContentCache(config, fetcher)


def _create_embedding_generator(config):
    """Create embedding generator (only used by the embedding strategy)."""
    from supportbot.retrieval.embeddings import EmbeddingGenerator

    if config.ranking.strategy != "embedding":
        return None
    return EmbeddingGenerator(
        model=config.ranking.embedding_model,
        api_key=config.llm.openai_api_key,
    )


def _create_ranker(config, store, embedding_generator):
    """Create relevance ranker for the configured strategy."""
    from supportbot.retrieval.factory import RankerFactory
    return RankerFactory.create(config, store=store, embedder=embedding_generator)


def _create_context_manager(config):
    """Create conversation context manager."""
    from supportbot.conversation.context_manager import ConversationContextManager
    return ConversationContextManager(config)


def _create_session_store(store):
    """Create channel session store."""
    from supportbot.session.store import ChannelSessionStore
    return ChannelSessionStore(store)


def _create_registry(config, store):
    """Create dynamic channel registry."""
    from supportbot.registry.registry import DynamicChannelRegistry
    return DynamicChannelRegistry(store, config)


def _create_supplemental_loader(config, fetcher, store):
    """Create channel-specific document loader."""
    from supportbot.content.supplemental import SupplementalContentLoader
    return SupplementalContentLoader(config, fetcher, store)


def _create_orchestrator(config, sessions, contexts, content_cache, ranker, llm, registry, supplemental):
    """Create support orchestrator."""
    from supportbot.support.orchestrator import SupportOrchestrator

    return SupportOrchestrator(
        config=config.support,
        ranking=config.ranking,
        sessions=sessions,
        contexts=contexts,
        content=content_cache,
        ranker=ranker,
        llm=llm,
        registry=registry,
        supplemental=supplemental,
    )


class DIContainer(containers.DeclarativeContainer):
    """Main dependency injection container."""

    # Configuration provider
    config = providers.Singleton(get_config)

    # Key-value Store
    store = providers.Singleton(
        _create_store,
        config=config.provided.store,
    )

    # LLM Provider
    llm = providers.Singleton(
        _create_llm,
        config=config.provided.llm,
    )

    # Page Fetcher
    fetcher = providers.Singleton(
        _create_fetcher,
        config=config.provided.content,
    )

    # Content Cache
    content_cache = providers.Singleton(
        _create_content_cache,
        config=config.provided.content,
        fetcher=fetcher,
    )

    # Embedding Generator
    embedding_generator = providers.Singleton(
        _create_embedding_generator,
        config=config,
    )

    # Relevance Ranker
    ranker = providers.Singleton(
        _create_ranker,
        config=config,
        store=store,
        embedding_generator=embedding_generator,
    )

    # Conversation Contexts
    context_manager = providers.Singleton(
        _create_context_manager,
        config=config.provided.context,
    )

    # Session Store
    session_store = providers.Singleton(
        _create_session_store,
        store=store,
    )

    # Channel Registry
    registry = providers.Singleton(
        _create_registry,
        config=config.provided.registry,
        store=store,
    )

    # Supplemental Documents
    supplemental_loader = providers.Singleton(
        _create_supplemental_loader,
        config=config.provided.content,
        fetcher=fetcher,
        store=store,
    )

    # Orchestrator
    orchestrator = providers.Singleton(
        _create_orchestrator,
        config=config,
        sessions=session_store,
        contexts=context_manager,
        content_cache=content_cache,
        ranker=ranker,
        llm=llm,
        registry=registry,
        supplemental=supplemental_loader,
    )


# Global container instance
container = DIContainer()
