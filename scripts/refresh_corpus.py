"""Script to crawl the help center once and preview ranking for a query."""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from supportbot.content.cache import ContentCache
from supportbot.content.fetcher import HttpFetcher
from supportbot.core.config import get_config
from supportbot.core.logging import setup_logging
from supportbot.retrieval.factory import RankerFactory
from supportbot.retrieval.formatting import format_context


async def refresh_corpus(query: str | None) -> int:
    """Crawl every category and print what the cache would hold."""
    setup_logging(log_level="INFO")

    config = get_config()
    cache = ContentCache(config.content, HttpFetcher(config.content))

    print(f"Crawling {config.content.base_url} ...")

    try:
        snapshot = await cache.refresh(force=True)
        if snapshot is None:
            print("Crawl failed: no category page could be fetched")
            return 1

        for category, count in snapshot.counts().items():
            print(f"  {category:<20} {count} documents")
        print(f"Total: {snapshot.total_documents} documents")

        if query:
            ranker = RankerFactory.create(config)
            result = await ranker.rank(query, snapshot, config.ranking.token_budget)
            print(f"\nQuery: {query}")
            print(f"Categories: {', '.join(c.value for c in result.categories) or 'none'}")
            print(f"Tokens: {result.total_tokens} (fallback={result.used_fallback})")
            print(format_context(result, query))

    finally:
        await cache.stop()

    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--query", help="Rank the fresh corpus against this question")
    args = parser.parse_args()
    return asyncio.run(refresh_corpus(args.query))


if __name__ == "__main__":
    sys.exit(main())
