"""Help-center corpus: catalog, crawling and the refreshed content cache."""

from supportbot.content.cache import ContentCache
from supportbot.content.catalog import CATALOG, Category, CategorySpec, Product
from supportbot.content.models import CorpusSnapshot, Document

__all__ = [
    "CATALOG",
    "Category",
    "CategorySpec",
    "ContentCache",
    "CorpusSnapshot",
    "Document",
    "Product",
]
