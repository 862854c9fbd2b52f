"""Protocol interfaces for dependency injection."""

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from supportbot.content.models import CorpusSnapshot
    from supportbot.llm.models import Completion
    from supportbot.retrieval.models import RankedResult


@runtime_checkable
class KeyValueStore(Protocol):
    """Backing key-value store interface.

    Plain string values plus hash collections, the subset of Redis the
    session store, channel registry and caches rely on.
    """

    async def get(self, key: str) -> str | None:
        """Get a string value, or None if absent."""
        ...

    async def set(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        """Set a string value, optionally expiring after ttl_seconds."""
        ...

    async def delete(self, key: str) -> None:
        """Delete a key of any type."""
        ...

    async def hset(self, key: str, field: str, value: str) -> None:
        """Set one field of a hash."""
        ...

    async def hget(self, key: str, field: str) -> str | None:
        """Get one field of a hash."""
        ...

    async def hgetall(self, key: str) -> dict[str, str]:
        """Get all fields of a hash (empty dict if absent)."""
        ...

    async def hdel(self, key: str, field: str) -> None:
        """Delete one field of a hash."""
        ...

    async def scan(self, pattern: str) -> list[str]:
        """List keys matching a glob-style pattern."""
        ...

    async def close(self) -> None:
        """Release connections."""
        ...


@runtime_checkable
class CompletionProvider(Protocol):
    """AI completion capability interface."""

    async def complete(self, messages: list[dict[str, str]]) -> "Completion":
        """Complete an ordered list of role-tagged messages.

        Args:
            messages: [{"role": "system" | "user" | "assistant", "content": str}]

        Returns:
            Completion with is_valid, text and confidence
        """
        ...


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Text embedding interface."""

    async def generate(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for a list of texts."""
        ...

    async def embed_query(self, query: str) -> list[float]:
        """Embed a single query string."""
        ...


@runtime_checkable
class RelevanceRanker(Protocol):
    """Retrieval strategy interface."""

    async def rank(
        self,
        query: str,
        snapshot: "CorpusSnapshot",
        token_budget: int,
    ) -> "RankedResult":
        """Select a token-bounded, ordered subset of the snapshot for a query.

        Args:
            query: User query text
            snapshot: Corpus snapshot to rank against
            token_budget: Maximum cumulative estimated tokens of the result

        Returns:
            RankedResult whose documents never exceed token_budget in total
        """
        ...


@runtime_checkable
class DocumentFetcher(Protocol):
    """HTML page fetching interface used by the crawler."""

    async def fetch(self, url: str) -> str:
        """Fetch a page and return its text body.

        Raises:
            FetchError: If the page could not be fetched
        """
        ...

    async def close(self) -> None:
        """Release connections."""
        ...
