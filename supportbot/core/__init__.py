"""Core infrastructure module - config, DI container, protocols, exceptions."""

from supportbot.core.config import (
    AppConfig,
    ContentConfig,
    ContextConfig,
    LLMConfig,
    RankingConfig,
    RegistryConfig,
    StoreConfig,
    SupportConfig,
)
from supportbot.core.exceptions import (
    AppError,
    CompletionError,
    ConfigurationError,
    CorpusNotLoadedError,
    FetchError,
    InvalidTransitionError,
    StoreError,
    UnknownConversationError,
    UnknownSelectionError,
)

__all__ = [
    "AppConfig",
    "LLMConfig",
    "StoreConfig",
    "ContentConfig",
    "RankingConfig",
    "ContextConfig",
    "RegistryConfig",
    "SupportConfig",
    "AppError",
    "ConfigurationError",
    "UnknownSelectionError",
    "StoreError",
    "CorpusNotLoadedError",
    "CompletionError",
    "FetchError",
    "InvalidTransitionError",
    "UnknownConversationError",
]
