"""Render ranked documents into prompt context."""

from supportbot.content.models import Document
from supportbot.retrieval.models import RankedResult

NO_CONTENT_TEXT = "No relevant information found. Please ask to talk to team for specific help."
CHANNEL_DOCS_HEADER = "CHANNEL-SPECIFIC DOCUMENTATION"


def format_document(document: Document) -> str:
    category = document.category.value if document.category else document.origin
    return f"## {document.title}\nCategory: {category}\nURL: {document.url}\n\n{document.body}\n\n---"


def format_context(result: RankedResult, query: str = "") -> str:
    """Sections for each selected document, or a fixed line when nothing was selected."""
    if result.is_empty:
        return NO_CONTENT_TEXT
    return "\n\n".join(format_document(scored.document) for scored in result.documents)


def format_channel_documents(documents: list[Document]) -> str:
    """Channel-specific documents under their own header; empty when there are none."""
    if not documents:
        return ""
    sections = "\n\n".join(format_document(doc) for doc in documents)
    return f"{CHANNEL_DOCS_HEADER}:\n\n{sections}"
