"""Cached-embedding cosine similarity ranking."""

import hashlib
import json
import math

from supportbot.content.models import CorpusSnapshot, Document
from supportbot.core.config import RankingConfig
from supportbot.core.exceptions import CompletionError
from supportbot.core.logging import get_logger
from supportbot.core.protocols import EmbeddingProvider, KeyValueStore
from supportbot.retrieval.factory import RankerFactory
from supportbot.retrieval.models import RankedResult, ScoredDocument

logger = get_logger(__name__)

EMBEDDING_PREFIX = "emb:"


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Cosine similarity; 0.0 for mismatched lengths or zero vectors."""
    if not a or len(a) != len(b):
        return 0.0
    dot = sum(x * y for x, y in zip(a, b, strict=True))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


class EmbeddingCache:
    """Vectors keyed by SHA-256 of the (truncated) text, stored without expiry."""

    def __init__(self, store: KeyValueStore, embedder: EmbeddingProvider, max_text_length: int):
        self.store = store
        self.embedder = embedder
        self.max_text_length = max_text_length

    def _prepare(self, text: str) -> str:
        return text[: self.max_text_length]

    def key_for(self, text: str) -> str:
        digest = hashlib.sha256(self._prepare(text).encode("utf-8")).hexdigest()
        return EMBEDDING_PREFIX + digest

    async def _cached(self, key: str) -> list[float] | None:
        raw = await self.store.get(key)
        if raw is None:
            return None
        try:
            vector = json.loads(raw)
            if not isinstance(vector, list):
                raise ValueError("not a list")
            return [float(x) for x in vector]
        except (ValueError, TypeError):
            logger.warning("embedding_cache_discarded", key=key)
            await self.store.delete(key)
            return None

    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        """Embed texts, generating only those not cached yet."""
        keys = [self.key_for(text) for text in texts]
        vectors: list[list[float] | None] = [await self._cached(key) for key in keys]

        missing = [i for i, vector in enumerate(vectors) if vector is None]
        if missing:
            generated = await self.embedder.generate([self._prepare(texts[i]) for i in missing])
            for i, vector in zip(missing, generated, strict=True):
                vectors[i] = vector
                await self.store.set(keys[i], json.dumps(vector))
            logger.debug("embeddings_generated", count=len(missing), cached=len(texts) - len(missing))

        return [vector or [] for vector in vectors]

    async def embed(self, text: str) -> list[float]:
        return (await self.embed_many([text]))[0]


def document_text(document: Document) -> str:
    return f"{document.title}\n\n{document.body}"


@RankerFactory.register("embedding")
class EmbeddingRanker:
    """Rank every document by cosine similarity to the query, keep the top K under budget."""

    def __init__(self, config: RankingConfig, store: KeyValueStore, embedder: EmbeddingProvider):
        self.config = config
        self.cache = EmbeddingCache(store, embedder, config.embedding_max_text_length)

    async def rank(self, query: str, snapshot: CorpusSnapshot, token_budget: int) -> RankedResult:
        result = RankedResult(strategy="embedding")
        documents = list(snapshot.documents())
        if not documents or not query.strip():
            return result

        try:
            query_vector = await self.cache.embed(query)
            vectors = await self.cache.embed_many([document_text(doc) for doc in documents])
        except CompletionError as e:
            logger.error("embedding_rank_failed", error=e.message)
            result.used_fallback = True
            return result

        scored = [
            ScoredDocument(document=doc, score=cosine_similarity(query_vector, vector))
            for doc, vector in zip(documents, vectors, strict=True)
        ]
        scored.sort(key=lambda item: item.score, reverse=True)

        for item in scored[: self.config.embedding_top_k]:
            if result.contains(item.document) or not result.fits(item.document, token_budget):
                continue
            result.add(item)
            category = item.document.category
            if category is not None and category not in result.categories:
                result.categories.append(category)

        logger.info(
            "documents_ranked",
            strategy="embedding",
            documents=len(result.documents),
            total_tokens=result.total_tokens,
        )
        return result
