"""Ranking result models."""

from dataclasses import dataclass, field

from supportbot.content.catalog import Category
from supportbot.content.models import Document


@dataclass(frozen=True)
class ScoredDocument:
    """A document selected for a query, with the score that ordered it."""

    document: Document
    score: float


@dataclass
class RankedResult:
    """Token-bounded, ordered subset of a corpus for one query."""

    documents: list[ScoredDocument] = field(default_factory=list)
    categories: list[Category] = field(default_factory=list)
    total_tokens: int = 0
    used_fallback: bool = False
    strategy: str = "lexical"

    @property
    def is_empty(self) -> bool:
        return not self.documents

    def add(self, scored: ScoredDocument) -> None:
        self.documents.append(scored)
        self.total_tokens += scored.document.estimated_tokens

    def fits(self, document: Document, token_budget: int) -> bool:
        return self.total_tokens + document.estimated_tokens <= token_budget

    def contains(self, document: Document) -> bool:
        return any(scored.document.id == document.id for scored in self.documents)
