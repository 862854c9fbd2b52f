"""Application configuration using pydantic-settings."""

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file from project root
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(_env_file)


class LLMConfig(BaseSettings):
    """AI completion provider configuration."""

    provider: str = "openai"
    model: str = "gpt-4.1-mini"
    temperature: float = 0.7
    max_tokens: int = 700
    base_url: str | None = None

    # API keys (used based on provider)
    openai_api_key: str | None = None
    anthropic_api_key: str | None = None

    model_config = SettingsConfigDict(env_prefix="LLM_")


class StoreConfig(BaseSettings):
    """Backing key-value store configuration."""

    backend: str = "in_memory"
    redis_url: str = "redis://localhost:6379/0"

    model_config = SettingsConfigDict(env_prefix="STORE_")


class ContentConfig(BaseSettings):
    """Help-center crawl configuration."""

    base_url: str = "https://intercom.help/frodobots/en/"
    allowed_path_prefix: str = "/frodobots/en/"
    refresh_interval_seconds: int = 24 * 60 * 60
    max_articles_per_category: int = 10
    min_content_length: int = 50
    request_timeout_seconds: float = 10.0
    user_agent: str = "Mozilla/5.0 (compatible; SupportBot/1.0)"
    crawl_enabled: bool = True

    # Channel-specific documents (Google Docs and plain pages)
    supplemental_ttl_seconds: int = 24 * 60 * 60
    supplemental_max_chars: int = 50000

    model_config = SettingsConfigDict(env_prefix="CONTENT_")


class RankingConfig(BaseSettings):
    """Relevance ranking configuration."""

    strategy: str = "lexical"  # 'lexical' or 'embedding'
    token_budget: int = 15000
    max_categories: int = 3
    min_term_length: int = 3

    # Lexical scoring weights
    category_keyword_weight: int = 2
    product_mention_weight: int = 3
    title_term_weight: int = 3
    body_term_weight: int = 1
    exact_phrase_weight: int = 5
    question_word_weight: int = 1
    problem_word_weight: int = 2
    category_mention_weight: int = 2

    # Embedding strategy
    embedding_model: str = "text-embedding-3-small"
    embedding_top_k: int = 8
    embedding_max_text_length: int = 12000

    model_config = SettingsConfigDict(env_prefix="RANKING_")


class ContextConfig(BaseSettings):
    """Conversation context budget configuration."""

    max_tokens: int = 5000
    window_size: int = 10
    idle_ttl_seconds: int = 24 * 60 * 60

    model_config = SettingsConfigDict(env_prefix="CONTEXT_")


class RegistryConfig(BaseSettings):
    """Dynamic channel registry configuration."""

    key_prefix: str = "support_channels:"
    poll_interval_seconds: float = 10.0

    model_config = SettingsConfigDict(env_prefix="REGISTRY_")


class SupportConfig(BaseSettings):
    """Orchestration policy configuration."""

    confidence_threshold: float = 0.7
    require_registered_channel: bool = True
    handoff_message: str = (
        "Thanks for reaching out! Our support team will review your request and "
        "get back to you as soon as possible.\n\n**Support Hours:** Mon-Fri, 10am-6pm SGT.\n"
        "(*AI bot will no longer respond to messages in this conversation.*)"
    )
    low_confidence_message: str = (
        "I'm not fully sure about that, please tag a moderator for more help."
    )
    fallback_message: str = (
        "Sorry, I'm having trouble answering right now. You can ask to talk to team "
        "for more detailed help."
    )
    out_of_scope_message: str = (
        "This channel is not set up for support. Please ask your question in one of "
        "the support channels."
    )
    escalation_phrases: list[str] = Field(
        default_factory=lambda: [
            "talk to human",
            "speak to human",
            "human help",
            "human please",
            "real person",
            "support team",
            "customer service",
            "escalate",
            "talk to team",
            "speak to team",
            "need human",
            "human support",
            "contact team",
            "need team help",
        ]
    )

    model_config = SettingsConfigDict(env_prefix="SUPPORT_")


class AppConfig(BaseSettings):
    """Top-level application configuration."""

    app_name: str = "Support Bot"
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = True
    log_dir: str | None = None
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list = Field(default_factory=lambda: ["*"])

    llm: LLMConfig = Field(default_factory=LLMConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    content: ContentConfig = Field(default_factory=ContentConfig)
    ranking: RankingConfig = Field(default_factory=RankingConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    support: SupportConfig = Field(default_factory=SupportConfig)

    model_config = SettingsConfigDict(env_file=str(_env_file), env_file_encoding="utf-8", extra="ignore")


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return AppConfig()
