"""
Firecrawl Backend - Generic Managed Scraping

Renders pages through the Firecrawl scrape API and searches through its
web search endpoint restricted to facebook.com. Search results are web
snippets: content comes from the result description and the author is
never known.

Requires:
- FIRECRAWL_API_KEY
"""

import logging
from typing import Any, Dict, List, Optional

from aiohttp import ClientSession, ClientTimeout

from ..context import ScraperContext
from ..errors import ConfigurationError, TransportError
from ..models import Post, ScrapeOptions, ScrapeResult, SearchOptions, SearchResult
from ..retry import FetchResponse, fetch_with_retry
from .base import (
    BackendCapabilities,
    BackendType,
    ScrapePipeline,
    error_result,
    search_error_result,
)

logger = logging.getLogger(__name__)


FIRECRAWL_CAPABILITIES = BackendCapabilities(
    remote_api=True,
    requires_credentials=True,
    javascript_rendering=True,
    anti_blocking=False,
    structured_search=False,
    comments=True,
)

WAIT_FOR_MS = 3000
MAX_SNIPPET_LENGTH = 2000


class FirecrawlBackend:
    """
    Firecrawl scrape/search backend.

    Usage:
        backend = FirecrawlBackend(context)
        result = await backend.search("climate", SearchOptions(limit=5))
    """

    backend_type = BackendType.FIRECRAWL

    def __init__(self, context: ScraperContext, session: Optional[ClientSession] = None):
        self.context = context
        self.config = context.config
        self.base_url = self.config.firecrawl_base_url.rstrip("/")
        self.pipeline = ScrapePipeline(self.name, context)
        self._session = session
        self._owns_session = session is None

    @property
    def name(self) -> str:
        return self.backend_type.value

    @property
    def capabilities(self) -> BackendCapabilities:
        return FIRECRAWL_CAPABILITIES

    def is_available(self) -> bool:
        return bool(self.config.firecrawl_api_key)

    def _session_or_create(self) -> ClientSession:
        if self._session is None or self._session.closed:
            self._session = ClientSession(timeout=ClientTimeout(total=self.config.timeout))
            self._owns_session = True
        return self._session

    async def _post(self, endpoint: str, body: Dict[str, Any], timeout: float) -> Dict[str, Any]:
        response: FetchResponse = await fetch_with_retry(
            self._session_or_create(),
            "POST",
            f"{self.base_url}/{endpoint}",
            self.context.retry_options(),
            json=body,
            headers={
                "Authorization": f"Bearer {self.config.firecrawl_api_key}",
                "Content-Type": "application/json",
            },
            timeout=ClientTimeout(total=timeout),
        )
        if not response.ok:
            raise TransportError(
                f"Firecrawl API error: HTTP {response.status}: {response.text[:200]}",
                status=response.status,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise TransportError(f"Firecrawl returned invalid JSON: {e}") from e

        if not payload.get("success", False):
            raise TransportError(f"Firecrawl error: {payload.get('error', 'unknown error')}")
        return payload

    async def _fetch(self, url: str, timeout: float) -> str:
        payload = await self._post(
            "scrape",
            {
                "url": url,
                "formats": ["html", "markdown"],
                "waitFor": WAIT_FOR_MS,
                "timeout": int(timeout * 1000),
                "onlyMainContent": False,
            },
            # The upstream render may take the full page timeout plus waitFor
            timeout + WAIT_FOR_MS / 1000.0,
        )
        data = payload.get("data") or {}
        return data.get("html") or data.get("rawHtml") or ""

    async def _search_items(self, query: str, options: SearchOptions, timeout: float) -> List[Post]:
        payload = await self.pipeline.request(lambda: self._post(
            "search",
            {"query": f"site:facebook.com {query}", "limit": options.limit},
            timeout,
        ))

        items = []
        for index, hit in enumerate(payload.get("data") or []):
            content = hit.get("description") or hit.get("markdown") or hit.get("title") or ""
            items.append(Post(
                id=f"search_{index}",
                author="Unknown",
                content=content[:MAX_SNIPPET_LENGTH],
                post_url=hit.get("url", ""),
            ))
        return items

    async def scrape_url(self, url: str, options: Optional[ScrapeOptions] = None) -> ScrapeResult:
        options = options or ScrapeOptions()
        if not self.is_available():
            return error_result(self.name, ConfigurationError("FIRECRAWL_API_KEY not configured"), url)

        timeout = options.timeout or self.config.timeout
        return await self.pipeline.scrape(url, options, lambda: self._fetch(url, timeout))

    async def search(self, query: str, options: Optional[SearchOptions] = None) -> SearchResult:
        options = options or SearchOptions()
        if not self.is_available():
            return search_error_result(self.name, ConfigurationError("FIRECRAWL_API_KEY not configured"), query)

        timeout = options.timeout or self.config.timeout
        return await self.pipeline.search(query, options, lambda: self._search_items(query, options, timeout))

    async def cleanup(self) -> None:
        """Close the HTTP session if this backend opened it."""
        if self._session and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None
        logger.info("FirecrawlBackend closed")
