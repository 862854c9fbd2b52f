"""Corpus data models."""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType

from supportbot.content.catalog import Category
from supportbot.utils.token_counter import estimate_tokens


@dataclass(frozen=True)
class Document:
    """One retrievable unit of knowledge.

    Immutable once fetched; a refresh replaces documents wholesale.
    """

    id: str
    title: str
    body: str
    category: Category | None
    url: str = ""
    origin: str = "corpus"  # 'corpus' or 'channel'
    estimated_tokens: int = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "estimated_tokens", estimate_tokens(self.body))


@dataclass(frozen=True)
class CorpusSnapshot:
    """Complete {category -> documents} view at one point in time.

    Built off to the side and swapped in whole; never mutated after construction.
    """

    categories: Mapping[Category, tuple[Document, ...]]
    refreshed_at: datetime

    @classmethod
    def build(
        cls,
        buckets: Mapping[Category, list[Document]],
        refreshed_at: datetime,
    ) -> "CorpusSnapshot":
        """Freeze buckets into a snapshot, with every declared category present."""
        frozen = {category: tuple(buckets.get(category, ())) for category in Category}
        return cls(categories=MappingProxyType(frozen), refreshed_at=refreshed_at)

    def get_category(self, category: Category) -> tuple[Document, ...]:
        return self.categories.get(category, ())

    def counts(self) -> dict[str, int]:
        return {category.value: len(docs) for category, docs in self.categories.items()}

    @property
    def total_documents(self) -> int:
        return sum(len(docs) for docs in self.categories.values())

    def documents(self) -> Iterator[Document]:
        """Iterate all documents in category declaration order."""
        for docs in self.categories.values():
            yield from docs
