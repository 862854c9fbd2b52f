"""OpenAI embedding generator."""

import asyncio

from openai import APIError, AsyncOpenAI, RateLimitError

from supportbot.core.exceptions import CompletionError
from supportbot.core.logging import get_logger

logger = get_logger(__name__)

# Default batch size for embedding requests
DEFAULT_BATCH_SIZE = 100
# Maximum retries for rate limiting
MAX_RETRIES = 3
# Delay between retries (seconds)
RETRY_DELAY = 1.0


class EmbeddingGenerator:
    """Generate embeddings using OpenAI's embedding models."""

    def __init__(self, model: str = "text-embedding-3-small", api_key: str | None = None):
        """Initialize the embedding generator.

        Args:
            model: OpenAI embedding model to use
            api_key: Optional OpenAI API key (uses env var if not provided)
        """
        self.model = model
        self._api_key = api_key
        self._client: AsyncOpenAI | None = None

    def _get_client(self) -> AsyncOpenAI:
        """Get or create async OpenAI client."""
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key)
        return self._client

    async def generate(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for a list of texts.

        Args:
            texts: List of text strings to embed

        Returns:
            List of embedding vectors, in input order
        """
        if not texts:
            return []

        # The API rejects empty strings
        valid_texts = [t if t.strip() else " " for t in texts]

        all_embeddings: list[list[float]] = []
        for i in range(0, len(valid_texts), DEFAULT_BATCH_SIZE):
            batch = valid_texts[i : i + DEFAULT_BATCH_SIZE]
            all_embeddings.extend(await self._embed_batch_with_retry(batch))

        return all_embeddings

    async def embed_query(self, query: str) -> list[float]:
        """Embed a single query string."""
        embeddings = await self.generate([query])
        return embeddings[0] if embeddings else []

    async def _embed_batch_with_retry(self, texts: list[str]) -> list[list[float]]:
        """Embed a batch of texts, backing off on rate limits.

        Raises:
            CompletionError: On non-retryable failures or when retries run out
        """
        client = self._get_client()
        last_error: Exception | None = None

        for attempt in range(MAX_RETRIES):
            try:
                response = await client.embeddings.create(model=self.model, input=texts)
                return [item.embedding for item in response.data]
            except RateLimitError as e:
                last_error = e
                wait_time = RETRY_DELAY * (2**attempt)
                logger.warning(
                    "embedding_rate_limit_hit",
                    attempt=attempt + 1,
                    max_retries=MAX_RETRIES,
                    wait_time=wait_time,
                )
                await asyncio.sleep(wait_time)
            except APIError as e:
                logger.error("embedding_failed", error=str(e))
                raise CompletionError(f"Embedding request failed: {e}", provider="openai") from e

        logger.error("embedding_max_retries_exceeded", error=str(last_error), batch_size=len(texts))
        raise CompletionError("Max retries exceeded for embedding generation", provider="openai")
