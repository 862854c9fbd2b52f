"""Channel-specific documents referenced by a channel registration."""

import hashlib
import json
import re
from datetime import UTC, datetime

from supportbot.content.extractor import extract_plain_text
from supportbot.content.models import Document
from supportbot.core.config import ContentConfig
from supportbot.core.exceptions import FetchError
from supportbot.core.logging import get_logger
from supportbot.core.protocols import DocumentFetcher, KeyValueStore

logger = get_logger(__name__)

CACHE_PREFIX = "supplemental:"
GOOGLE_DOC_ID_PATTERN = re.compile(r"docs\.google\.com/document/(?:u/\d+/)?d/([a-zA-Z0-9_-]+)")
TRUNCATION_NOTICE = "\n\n[Content truncated - document continues...]"
MIN_CONTENT_LENGTH = 100


def google_doc_export_url(url: str) -> str | None:
    """Plain-text export URL of a Google Docs link, or None for other URLs."""
    match = GOOGLE_DOC_ID_PATTERN.search(url)
    if match is None:
        return None
    return f"https://docs.google.com/document/d/{match.group(1)}/export?format=txt"


def clean_text(raw: str, max_chars: int) -> str:
    """Normalize line breaks and spacing, then truncate to max_chars."""
    content = raw.replace("\r\n", "\n").replace("\r", "\n")
    content = re.sub(r"\n{3,}", "\n\n", content)
    content = re.sub(r"[ \t]+", " ", content).strip()
    if len(content) > max_chars:
        content = content[:max_chars] + TRUNCATION_NOTICE
    return content


class SupplementalContentLoader:
    """Fetch and cache the external documents linked to a channel."""

    def __init__(self, config: ContentConfig, fetcher: DocumentFetcher, store: KeyValueStore):
        self.config = config
        self.fetcher = fetcher
        self.store = store

    def _cache_key(self, url: str) -> str:
        return CACHE_PREFIX + hashlib.sha256(url.encode("utf-8")).hexdigest()

    async def load(self, links: list[str]) -> list[Document]:
        """Documents for each link that could be fetched, in link order."""
        documents: list[Document] = []
        for url in links:
            document = await self.load_one(url)
            if document is not None:
                documents.append(document)
        return documents

    async def load_one(self, url: str) -> Document | None:
        key = self._cache_key(url)

        cached = await self.store.get(key)
        if cached:
            try:
                data = json.loads(cached)
                return self._to_document(url, data["title"], data["content"])
            except (ValueError, KeyError, TypeError):
                logger.warning("supplemental_cache_discarded", url=url)
                await self.store.delete(key)

        export_url = google_doc_export_url(url)
        try:
            raw = await self.fetcher.fetch(export_url or url)
        except FetchError as e:
            logger.warning("supplemental_fetch_failed", url=url, error=e.message)
            return None

        if export_url:
            title = "Google Doc"
            content = clean_text(raw, self.config.supplemental_max_chars)
        else:
            title = url
            content = clean_text(extract_plain_text(raw), self.config.supplemental_max_chars)

        if len(content) < MIN_CONTENT_LENGTH:
            logger.warning("supplemental_content_too_short", url=url, length=len(content))
            return None

        payload = {
            "url": url,
            "title": title,
            "content": content,
            "last_fetched": datetime.now(UTC).isoformat(),
        }
        await self.store.set(
            key,
            json.dumps(payload, ensure_ascii=False),
            ttl_seconds=self.config.supplemental_ttl_seconds,
        )
        logger.info("supplemental_content_cached", url=url, length=len(content))
        return self._to_document(url, title, content)

    def _to_document(self, url: str, title: str, content: str) -> Document:
        return Document(id=url, title=title, body=content, category=None, url=url, origin="channel")
