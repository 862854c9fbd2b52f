"""Category-by-category crawl of the help center."""

from urllib.parse import urljoin, urlparse

from supportbot.content.catalog import CATALOG, Category, CategorySpec
from supportbot.content.extractor import extract_article, extract_article_links
from supportbot.content.models import Document
from supportbot.core.config import ContentConfig
from supportbot.core.exceptions import FetchError
from supportbot.core.logging import get_logger
from supportbot.core.protocols import DocumentFetcher

logger = get_logger(__name__)


class CorpusCrawler:
    """Fetch each declared category page, then a bounded number of its articles."""

    def __init__(self, config: ContentConfig, fetcher: DocumentFetcher):
        self.config = config
        self.fetcher = fetcher
        self.host = urlparse(config.base_url).hostname or ""

    def source_url(self, spec: CategorySpec) -> str:
        return urljoin(self.config.base_url, spec.source_path)

    async def crawl(self) -> dict[Category, list[Document]]:
        """Crawl every category into fresh buckets.

        One failed article is logged and skipped. A category whose page
        failed is left out of the result, so the caller can keep its
        previous bucket.

        Raises:
            FetchError: If no category page could be fetched at all
        """
        buckets: dict[Category, list[Document]] = {}

        for category, spec in CATALOG.items():
            try:
                buckets[category] = await self.crawl_category(spec)
            except FetchError as e:
                logger.warning("category_fetch_failed", category=category.value, url=e.url, error=e.message)

        if not buckets:
            raise FetchError("Every category page failed to fetch", url=self.config.base_url)

        return buckets

    async def crawl_category(self, spec: CategorySpec) -> list[Document]:
        """Fetch one category page and its first articles.

        Raises:
            FetchError: If the category page itself could not be fetched
        """
        page_url = self.source_url(spec)
        html = await self.fetcher.fetch(page_url)
        links = extract_article_links(
            html,
            page_url,
            host=self.host,
            path_prefix=self.config.allowed_path_prefix,
            limit=self.config.max_articles_per_category,
        )

        documents: list[Document] = []
        for url in links:
            document = await self._fetch_document(url, spec.category)
            if document is not None:
                documents.append(document)

        logger.info(
            "category_crawled",
            category=spec.category.value,
            links=len(links),
            documents=len(documents),
        )
        return documents

    async def _fetch_document(self, url: str, category: Category) -> Document | None:
        try:
            html = await self.fetcher.fetch(url)
        except FetchError as e:
            logger.warning("document_fetch_failed", url=url, category=category.value, error=e.message)
            return None

        article = extract_article(html, url)
        if len(article.body) < self.config.min_content_length:
            logger.debug("document_too_short", url=url, length=len(article.body))
            return None

        return Document(id=url, title=article.title, body=article.body, category=category, url=url)
