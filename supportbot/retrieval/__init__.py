"""Relevance ranking strategies."""

# Import strategies first to trigger registration via decorators
from supportbot.retrieval import embedding_ranker, lexical
from supportbot.retrieval.factory import RankerFactory
from supportbot.retrieval.formatting import format_context
from supportbot.retrieval.models import RankedResult, ScoredDocument

__all__ = ["RankedResult", "RankerFactory", "ScoredDocument", "format_context"]
