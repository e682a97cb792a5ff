"""
Bright Data Backend - Managed Unblocker

Fetches pages through the Bright Data unlocker API, which handles
proxies, CAPTCHAs and fingerprinting upstream. Highest priority when a
token is configured.

Requires:
- BRIGHTDATA_API_TOKEN
- BRIGHTDATA_ZONE (defaults to "mcp_unlocker")
"""

import logging
from typing import Optional
from urllib.parse import quote, quote_plus

from aiohttp import ClientSession, ClientTimeout

from ..context import ScraperContext
from ..errors import ConfigurationError, TransportError
from ..models import ScrapeOptions, ScrapeResult, SearchOptions, SearchResult
from ..retry import fetch_with_retry
from .base import (
    BackendCapabilities,
    BackendType,
    ScrapePipeline,
    error_result,
    search_error_result,
)

logger = logging.getLogger(__name__)


BRIGHTDATA_CAPABILITIES = BackendCapabilities(
    remote_api=True,
    requires_credentials=True,
    javascript_rendering=True,
    anti_blocking=True,
    structured_search=True,
    comments=True,
)


class BrightDataBackend:
    """
    Bright Data unlocker backend.

    Usage:
        backend = BrightDataBackend(context)
        result = await backend.scrape_url("https://www.facebook.com/nasa")
        await backend.cleanup()
    """

    API_URL = "https://api.brightdata.com/request"
    SEARCH_URL = "https://www.facebook.com/search/{type}?q={query}"
    backend_type = BackendType.BRIGHTDATA

    def __init__(self, context: ScraperContext, session: Optional[ClientSession] = None):
        self.context = context
        self.config = context.config
        self.pipeline = ScrapePipeline(self.name, context)
        self._session = session
        self._owns_session = session is None

    @property
    def name(self) -> str:
        return self.backend_type.value

    @property
    def capabilities(self) -> BackendCapabilities:
        return BRIGHTDATA_CAPABILITIES

    def is_available(self) -> bool:
        return bool(self.config.brightdata_token)

    def _session_or_create(self) -> ClientSession:
        if self._session is None or self._session.closed:
            self._session = ClientSession(timeout=ClientTimeout(total=self.config.timeout))
            self._owns_session = True
        return self._session

    async def _fetch(self, url: str, timeout: float) -> str:
        """Fetch raw markup for ``url`` through the unlocker."""
        response = await fetch_with_retry(
            self._session_or_create(),
            "POST",
            self.API_URL,
            self.context.retry_options(),
            json={
                "zone": self.config.brightdata_zone,
                "url": url,
                "format": "raw",
            },
            headers={
                "Authorization": f"Bearer {self.config.brightdata_token}",
                "Content-Type": "application/json",
            },
            timeout=ClientTimeout(total=timeout),
        )
        if not response.ok:
            raise TransportError(
                f"Bright Data API error: HTTP {response.status}: {response.text[:200]}",
                status=response.status,
            )
        return response.text

    async def scrape_url(self, url: str, options: Optional[ScrapeOptions] = None) -> ScrapeResult:
        options = options or ScrapeOptions()
        if not self.is_available():
            return error_result(self.name, ConfigurationError("BRIGHTDATA_API_TOKEN not configured"), url)

        timeout = options.timeout or self.config.timeout
        return await self.pipeline.scrape(url, options, lambda: self._fetch(url, timeout))

    async def search(self, query: str, options: Optional[SearchOptions] = None) -> SearchResult:
        options = options or SearchOptions()
        if not self.is_available():
            return search_error_result(self.name, ConfigurationError("BRIGHTDATA_API_TOKEN not configured"), query)

        timeout = options.timeout or self.config.timeout
        search_url = self.SEARCH_URL.format(type=quote(options.type), query=quote_plus(query))

        async def collect():
            _, posts = await self.pipeline.fetch_posts(search_url, lambda: self._fetch(search_url, timeout))
            return posts

        return await self.pipeline.search(query, options, collect)

    async def cleanup(self) -> None:
        """Close the HTTP session if this backend opened it."""
        if self._session and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None
        logger.info("BrightDataBackend closed")
