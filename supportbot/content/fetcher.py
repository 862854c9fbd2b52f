"""HTTP page fetching."""

import httpx

from supportbot.core.config import ContentConfig
from supportbot.core.exceptions import FetchError
from supportbot.core.logging import get_logger

logger = get_logger(__name__)


class HttpFetcher:
    """Fetch pages over one shared httpx.AsyncClient.

    Every request is bounded by the configured timeout so one hung page
    cannot stall a crawl.
    """

    def __init__(self, config: ContentConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.config.request_timeout_seconds,
                headers={"User-Agent": self.config.user_agent},
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def fetch(self, url: str) -> str:
        client = self._get_client()
        try:
            response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise FetchError(f"Failed to fetch {url}: {e}", url=url) from e
        return response.text

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.debug("http_client_closed")
