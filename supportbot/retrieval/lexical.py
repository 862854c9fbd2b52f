"""Keyword-overlap relevance ranking."""

from supportbot.content.catalog import CATALOG, FALLBACK_CATEGORIES, Category, mentioned_products, mentions
from supportbot.content.models import CorpusSnapshot, Document
from supportbot.core.config import RankingConfig
from supportbot.core.logging import get_logger
from supportbot.retrieval.factory import RankerFactory
from supportbot.retrieval.models import RankedResult, ScoredDocument

logger = get_logger(__name__)

QUESTION_WORDS = ("how", "what", "why")
QUESTION_CATEGORIES = (Category.FAQ, Category.TROUBLESHOOTING)
PROBLEM_WORDS = ("problem", "issue", "error")


@RankerFactory.register("lexical")
class LexicalRanker:
    """Score categories by keyword overlap, then documents by term hits.

    Categories and documents with equal scores keep declaration/discovery order.
    """

    def __init__(self, config: RankingConfig):
        self.config = config

    def _terms(self, query: str) -> list[str]:
        return [word for word in query.split() if len(word) >= self.config.min_term_length]

    def score_category(self, query: str, category: Category) -> int:
        """Score one category against a lowercased query."""
        spec = CATALOG[category]
        score = sum(self.config.category_keyword_weight for kw in spec.keywords if mentions(query, kw))

        for product in mentioned_products(query):
            if product.value in category.value:
                score += self.config.product_mention_weight
                break

        if category in QUESTION_CATEGORIES and any(mentions(query, w) for w in QUESTION_WORDS):
            score += self.config.question_word_weight

        if category is Category.TROUBLESHOOTING and any(mentions(query, w) for w in PROBLEM_WORDS):
            score += self.config.problem_word_weight

        return score

    def select_categories(self, query: str) -> list[tuple[Category, int]]:
        """Top-scoring categories (score > 0), best first."""
        scored = [(category, self.score_category(query, category)) for category in Category]
        positive = [(category, score) for category, score in scored if score > 0]
        positive.sort(key=lambda item: item[1], reverse=True)
        return positive[: self.config.max_categories]

    def score_document(self, query: str, document: Document) -> int:
        """Score one document against a lowercased query."""
        title = document.title.lower()
        body = document.body.lower()

        score = 0
        for term in self._terms(query):
            if term in title:
                score += self.config.title_term_weight
            if term in body:
                score += self.config.body_term_weight

        if query and query in body:
            score += self.config.exact_phrase_weight

        if document.category is not None and document.category.value in query:
            score += self.config.category_mention_weight

        return score

    def _fill(
        self,
        result: RankedResult,
        scored: list[ScoredDocument],
        token_budget: int,
    ) -> None:
        """Add whole documents in order until the next one would overflow the budget."""
        for item in scored:
            if result.contains(item.document):
                continue
            if not result.fits(item.document, token_budget):
                break
            result.add(item)

    async def rank(self, query: str, snapshot: CorpusSnapshot, token_budget: int) -> RankedResult:
        query_lower = query.lower().strip()
        result = RankedResult(strategy="lexical")

        for category, category_score in self.select_categories(query_lower):
            result.categories.append(category)
            scored = [
                ScoredDocument(document=doc, score=self.score_document(query_lower, doc))
                for doc in snapshot.get_category(category)
            ]
            scored.sort(key=lambda item: item.score, reverse=True)
            self._fill(result, scored, token_budget)
            logger.debug("category_ranked", category=category.value, score=category_score)

        if result.is_empty:
            result = RankedResult(strategy="lexical", used_fallback=True)
            for category in FALLBACK_CATEGORIES:
                result.categories.append(category)
                self._fill(
                    result,
                    [ScoredDocument(document=doc, score=0) for doc in snapshot.get_category(category)],
                    token_budget,
                )

        logger.info(
            "documents_ranked",
            strategy="lexical",
            categories=[c.value for c in result.categories],
            documents=len(result.documents),
            total_tokens=result.total_tokens,
            used_fallback=result.used_fallback,
        )
        return result
