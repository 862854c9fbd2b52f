"""Periodically refreshed, copy-on-write corpus cache."""

import asyncio
import contextlib
import time
from datetime import UTC, datetime
from typing import Any

from supportbot.content.catalog import Category, parse_category
from supportbot.content.crawler import CorpusCrawler
from supportbot.content.models import CorpusSnapshot, Document
from supportbot.core.config import ContentConfig
from supportbot.core.exceptions import CorpusNotLoadedError
from supportbot.core.logging import get_logger
from supportbot.core.protocols import DocumentFetcher

logger = get_logger(__name__)


class ContentCache:
    """Owner of the document corpus.

    Readers get whichever complete snapshot is current; a refresh builds
    the next one off to the side and swaps the reference. Only one refresh
    runs at a time and concurrent callers await the in-flight one.
    """

    def __init__(self, config: ContentConfig, fetcher: DocumentFetcher):
        self.config = config
        self.fetcher = fetcher
        self.crawler = CorpusCrawler(config, fetcher)
        self._snapshot: CorpusSnapshot | None = None
        self._loaded_at: float | None = None
        self._refresh_task: asyncio.Task | None = None
        self._loop_task: asyncio.Task | None = None

    @property
    def is_initialized(self) -> bool:
        return self._snapshot is not None

    @property
    def is_refreshing(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    def snapshot(self) -> CorpusSnapshot:
        """Return the current snapshot without any I/O.

        Raises:
            CorpusNotLoadedError: If no snapshot has ever loaded
        """
        if self._snapshot is None:
            raise CorpusNotLoadedError()
        return self._snapshot

    def get_category(self, key: str | Category) -> tuple[Document, ...]:
        """Documents of one bucket in the current snapshot."""
        category = key if isinstance(key, Category) else parse_category(key)
        return self.snapshot().get_category(category)

    def load(self, documents: list[Document]) -> CorpusSnapshot:
        """Install a snapshot built from already fetched documents."""
        buckets: dict[Category, list[Document]] = {}
        for document in documents:
            if document.category is not None:
                buckets.setdefault(document.category, []).append(document)
        return self._swap(CorpusSnapshot.build(buckets, datetime.now(UTC)))

    def _swap(self, snapshot: CorpusSnapshot) -> CorpusSnapshot:
        self._snapshot = snapshot
        self._loaded_at = time.monotonic()
        return snapshot

    def _is_fresh(self) -> bool:
        return (
            self._loaded_at is not None
            and time.monotonic() - self._loaded_at < self.config.refresh_interval_seconds
        )

    async def refresh(self, force: bool = False) -> CorpusSnapshot | None:
        """Re-crawl and swap in a new snapshot.

        Args:
            force: Bypass the refresh-interval check (not the in-flight guard)

        Returns:
            The snapshot live after the refresh, or None if none ever loaded
        """
        if self.is_refreshing:
            logger.debug("corpus_refresh_coalesced")
            return await asyncio.shield(self._refresh_task)

        if not force and self._is_fresh():
            return self._snapshot

        if not self.config.crawl_enabled:
            logger.info("corpus_crawl_disabled")
            return self._snapshot

        self._refresh_task = asyncio.create_task(self._run_refresh())
        return await asyncio.shield(self._refresh_task)

    async def _run_refresh(self) -> CorpusSnapshot | None:
        started = time.perf_counter()
        logger.info("corpus_refresh_started")
        try:
            buckets = await self.crawler.crawl()
        except Exception as e:
            logger.exception(
                "corpus_refresh_failed",
                error=str(e),
                keeping_previous=self._snapshot is not None,
            )
            return self._snapshot

        if self._snapshot is not None:
            kept = [category for category in Category if category not in buckets]
            for category in kept:
                buckets[category] = list(self._snapshot.get_category(category))
            if kept:
                logger.warning("corpus_categories_kept", categories=[c.value for c in kept])

        snapshot = self._swap(CorpusSnapshot.build(buckets, datetime.now(UTC)))
        logger.info(
            "corpus_refresh_completed",
            total_documents=snapshot.total_documents,
            categories=snapshot.counts(),
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return snapshot

    async def _refresh_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.refresh_interval_seconds)
            await self.refresh(force=True)

    async def start(self) -> None:
        """Run the startup crawl and schedule periodic refreshes."""
        await self.refresh(force=True)
        if self.config.crawl_enabled and self._loop_task is None:
            self._loop_task = asyncio.create_task(self._refresh_loop())
            logger.info("corpus_refresh_scheduled", interval_seconds=self.config.refresh_interval_seconds)

    async def stop(self) -> None:
        """Cancel scheduled and in-flight refreshes and close the fetcher."""
        for task in (self._loop_task, self._refresh_task):
            if task is not None and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._loop_task = None
        self._refresh_task = None
        await self.fetcher.close()
        logger.info("content_cache_stopped")

    def status(self) -> dict[str, Any]:
        """Read-only corpus status for the admin surface."""
        snapshot = self._snapshot
        return {
            "initialized": snapshot is not None,
            "last_refreshed_at": snapshot.refreshed_at.isoformat() if snapshot else None,
            "categories": snapshot.counts() if snapshot else {},
            "total_documents": snapshot.total_documents if snapshot else 0,
            "refreshing": self.is_refreshing,
        }
