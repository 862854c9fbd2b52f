"""Common test fixtures."""

import asyncio

import pytest

from supportbot.content.cache import ContentCache
from supportbot.content.catalog import Category
from supportbot.content.models import CorpusSnapshot, Document
from supportbot.content.supplemental import SupplementalContentLoader
from supportbot.conversation.context_manager import ConversationContextManager
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
from supportbot.core.di_container import container as di_container
from supportbot.core.exceptions import CompletionError, FetchError
from supportbot.llm.confidence import evaluate_reply
from supportbot.llm.models import Completion
from supportbot.registry.registry import DynamicChannelRegistry
from supportbot.retrieval.lexical import LexicalRanker
from supportbot.session.store import ChannelSessionStore
from supportbot.store.in_memory_store import InMemoryKeyValueStore
from supportbot.support.orchestrator import SupportOrchestrator

HELP_BASE_URL = "https://help.example.com/en/"
HELP_PREFIX = "/en/"


class MockCompletionProvider:
    """Mock AI capability that records every call."""

    def __init__(self, completion: Completion | None = None):
        self.completion = completion or Completion(
            is_valid=True,
            text="Happy to help! Open Settings and choose Reset password.",
            confidence=0.9,
        )
        self.calls: list[list[dict[str, str]]] = []
        self.error: CompletionError | None = None

    async def complete(self, messages: list[dict[str, str]]) -> Completion:
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return self.completion

    def reply_with(self, text: str) -> None:
        """Answer with a reply scored like a real provider would."""
        self.completion = evaluate_reply(text)


class FakeFetcher:
    """Serve pages from a dict; unknown URLs fail like an HTTP error."""

    def __init__(self, pages: dict[str, str] | None = None, delay: float = 0.0):
        self.pages = pages or {}
        self.delay = delay
        self.requests: list[str] = []
        self.closed = False

    async def fetch(self, url: str) -> str:
        self.requests.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)
        if url not in self.pages:
            raise FetchError(f"Failed to fetch {url}: 404", url=url)
        return self.pages[url]

    async def close(self) -> None:
        self.closed = True


class FakeEmbedder:
    """Deterministic embeddings: one dimension per vocabulary word."""

    VOCABULARY = ("password", "battery", "fight", "school", "drive")

    def __init__(self):
        self.generated: list[str] = []
        self.fail = False

    async def generate(self, texts: list[str]) -> list[list[float]]:
        if self.fail:
            raise CompletionError("Embedding request failed", provider="openai")
        self.generated.extend(texts)
        return [self._vector(text) for text in texts]

    async def embed_query(self, query: str) -> list[float]:
        return (await self.generate([query]))[0]

    def _vector(self, text: str) -> list[float]:
        lower = text.lower()
        return [float(lower.count(word)) for word in self.VOCABULARY] + [0.01]


def make_document(
    doc_id: str,
    title: str = "Article",
    body: str = "",
    category: Category | None = Category.FAQ,
    tokens: int | None = None,
) -> Document:
    """Build a document; tokens pads the body to an exact estimated size."""
    if tokens is not None:
        body = (body + " ").ljust(tokens * 4, "x")[: tokens * 4]
    return Document(
        id=doc_id,
        title=title,
        body=body or f"{title} body text",
        category=category,
        url=f"{HELP_BASE_URL}articles/{doc_id}",
    )


def article_html(title: str, paragraph: str) -> str:
    return (
        f"<html><head><title>{title} | Help</title></head><body>"
        f"<nav>Menu</nav><article><h1>{title}</h1><p>{paragraph}</p></article>"
        "<script>var tracking = 1;</script></body></html>"
    )


def category_html(*paths: str) -> str:
    links = "".join(f'<a href="{path}">Article</a>' for path in paths)
    return f"<html><body><main>{links}</main></body></html>"


@pytest.fixture
def test_config() -> AppConfig:
    """Create test configuration."""
    return AppConfig(
        debug=True,
        log_level="DEBUG",
        log_json=False,
        llm=LLMConfig(provider="openai", model="gpt-4o-mini", max_tokens=100, openai_api_key="test-key"),
        store=StoreConfig(backend="in_memory"),
        content=ContentConfig(
            base_url=HELP_BASE_URL,
            allowed_path_prefix=HELP_PREFIX,
            crawl_enabled=False,
            max_articles_per_category=3,
        ),
        ranking=RankingConfig(strategy="lexical", token_budget=2000),
        context=ContextConfig(max_tokens=5000, window_size=10),
        registry=RegistryConfig(poll_interval_seconds=3600),
        support=SupportConfig(confidence_threshold=0.5),
    )


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    """Create a fresh in-memory key-value store."""
    return InMemoryKeyValueStore()


@pytest.fixture
def mock_llm() -> MockCompletionProvider:
    """Create mock completion provider."""
    return MockCompletionProvider()


@pytest.fixture
def corpus_documents() -> list[Document]:
    """A small corpus spread over a few categories."""
    return [
        make_document(
            "101-reset-password",
            title="Resetting your password",
            body="To reset your password open the login page and click Forgot password.",
            category=Category.TROUBLESHOOTING,
        ),
        make_document(
            "102-connection-issues",
            title="Connection issues",
            body="If your bot shows a connection error restart the app and check your network.",
            category=Category.TROUBLESHOOTING,
        ),
        make_document(
            "201-first-drive",
            title="Your first drive",
            body="Setup your account, then start your first drive from the dashboard.",
            category=Category.GETTING_STARTED,
        ),
        make_document(
            "301-faq",
            title="Common questions",
            body="Answers to frequently asked questions about FrodoBots products.",
            category=Category.FAQ,
        ),
        make_document(
            "401-ufb-rules",
            title="UFB fight rules",
            body="Ultimate Fighting Bots matches last three minutes per round.",
            category=Category.UFB,
        ),
    ]


@pytest.fixture
def snapshot(corpus_documents) -> CorpusSnapshot:
    cache = ContentCache(ContentConfig(crawl_enabled=False), FakeFetcher())
    return cache.load(corpus_documents)


@pytest.fixture
def content_cache(test_config, corpus_documents) -> ContentCache:
    """Content cache preloaded with the test corpus."""
    cache = ContentCache(test_config.content, FakeFetcher())
    cache.load(corpus_documents)
    return cache


@pytest.fixture
def registry(store, test_config) -> DynamicChannelRegistry:
    return DynamicChannelRegistry(store, test_config.registry)


@pytest.fixture
def sessions(store) -> ChannelSessionStore:
    return ChannelSessionStore(store)


@pytest.fixture
def contexts(test_config) -> ConversationContextManager:
    return ConversationContextManager(test_config.context)


@pytest.fixture
def orchestrator(
    test_config,
    store,
    sessions,
    contexts,
    content_cache,
    registry,
    mock_llm,
) -> SupportOrchestrator:
    """Orchestrator wired to in-memory collaborators and the mock provider."""
    return SupportOrchestrator(
        config=test_config.support,
        ranking=test_config.ranking,
        sessions=sessions,
        contexts=contexts,
        content=content_cache,
        ranker=LexicalRanker(test_config.ranking),
        llm=mock_llm,
        registry=registry,
        supplemental=SupplementalContentLoader(test_config.content, FakeFetcher(), store),
    )


@pytest.fixture
def di_container_fixture():
    """Provide the DI container for testing."""
    yield di_container


@pytest.fixture
def override_llm(mock_llm):
    """Override completion provider in DI container."""
    with di_container.llm.override(mock_llm):
        yield
