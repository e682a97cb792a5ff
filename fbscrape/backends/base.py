"""
Backend Contract

Defines the interface that all scraping backends implement, plus the
shared behavior they compose instead of inheriting:

- free functions for the derived operations (page / post / comments)
  and for failure envelopes
- ScrapePipeline: cache lookup, rate-limiter slot, fetch, parse, cache
  store and envelope construction for backends that fetch markup
"""

import asyncio
import logging
import random
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from ..cache import Cache
from ..context import ScraperContext
from ..errors import EmptyResponseError
from ..models import (
    Post,
    ResultKind,
    ResultMetadata,
    ScrapeOptions,
    ScrapeResult,
    SearchOptions,
    SearchPayload,
    SearchResult,
    SearchType,
)

logger = logging.getLogger(__name__)

# Anything shorter is a block page or an empty shell
MIN_MARKUP_LENGTH = 100


class BackendType(Enum):
    """Available backend types."""
    BRIGHTDATA = "brightdata"          # Managed unblocker API (preferred)
    FIRECRAWL = "firecrawl"            # Generic managed scraping API
    PLAYWRIGHT_MCP = "playwright-mcp"  # Browser control delegated to the caller
    STANDALONE = "standalone"          # In-process Playwright (always available)


@dataclass
class BackendCapabilities:
    """
    Declares what a backend can and cannot do.

    Used for:
    - Status reporting
    - User expectations management
    """
    # Transport
    remote_api: bool = False
    local_browser: bool = False
    delegated: bool = False
    requires_credentials: bool = False

    # Fidelity
    javascript_rendering: bool = False
    anti_blocking: bool = False
    structured_search: bool = True  # Search results are parsed posts, not snippets
    comments: bool = True

    def get_limitations(self) -> List[str]:
        """Return list of known limitations for disclosure."""
        limitations = []

        if self.delegated:
            limitations.append("Returns instructions; the caller must run the browser")
        if self.requires_credentials:
            limitations.append("Requires an API credential")
        if not self.javascript_rendering:
            limitations.append("No JavaScript rendering")
        if not self.anti_blocking:
            limitations.append("Subject to login walls and IP blocking")
        if not self.structured_search:
            limitations.append("Search returns web snippets, not parsed posts")
        if not self.comments:
            limitations.append("Comments not captured")

        return limitations

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "remote_api": self.remote_api,
            "local_browser": self.local_browser,
            "delegated": self.delegated,
            "requires_credentials": self.requires_credentials,
            "javascript_rendering": self.javascript_rendering,
            "anti_blocking": self.anti_blocking,
            "structured_search": self.structured_search,
            "comments": self.comments,
            "known_limitations": self.get_limitations(),
        }


@runtime_checkable
class ScrapeBackend(Protocol):
    """
    Uniform backend contract.

    Implementations:
    - BrightDataBackend: Bright Data unlocker API
    - FirecrawlBackend: Firecrawl scrape/search API
    - PlaywrightMCPBackend: delegated browser instructions
    - StandaloneBackend: in-process Playwright Chromium

    A backend may also define ``async cleanup()`` to release resources.
    """

    @property
    def name(self) -> str:
        ...

    @property
    def capabilities(self) -> BackendCapabilities:
        ...

    def is_available(self) -> bool:
        ...

    async def scrape_url(self, url: str, options: Optional[ScrapeOptions] = None) -> ScrapeResult:
        ...

    async def search(self, query: str, options: Optional[SearchOptions] = None) -> SearchResult:
        ...


def elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def result_metadata(target: Optional[str], started: Optional[float]) -> Optional[ResultMetadata]:
    if target is None:
        return None
    return ResultMetadata(
        elapsed_ms=elapsed_ms(started) if started is not None else 0,
        target=target,
    )


def error_result(
    backend_name: str,
    error: Any,
    target: Optional[str] = None,
    started: Optional[float] = None,
) -> ScrapeResult:
    """Failure envelope for a scrape."""
    return ScrapeResult(
        kind=ResultKind.FAILURE,
        adapter_used=backend_name,
        error=str(error),
        metadata=result_metadata(target, started),
    )


def search_error_result(
    backend_name: str,
    error: Any,
    target: Optional[str] = None,
    started: Optional[float] = None,
) -> SearchResult:
    """Failure envelope for a search."""
    return SearchResult(
        kind=ResultKind.FAILURE,
        adapter_used=backend_name,
        error=str(error),
        metadata=result_metadata(target, started),
    )


async def scrape_page(backend: ScrapeBackend, url: str, options: Optional[ScrapeOptions] = None) -> ScrapeResult:
    return await backend.scrape_url(url, options or ScrapeOptions())


async def scrape_post(backend: ScrapeBackend, url: str, options: Optional[ScrapeOptions] = None) -> ScrapeResult:
    return await backend.scrape_url(url, options or ScrapeOptions())


async def scrape_comments(backend: ScrapeBackend, url: str, options: Optional[ScrapeOptions] = None) -> ScrapeResult:
    """Scrape ``url`` with include_comments forced on."""
    return await backend.scrape_url(url, replace(options or ScrapeOptions(), include_comments=True))


async def random_delay(
    min_delay: float,
    max_delay: float,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> float:
    """Sleep for a random duration in [min_delay, max_delay] seconds."""
    delay = random.uniform(min_delay, max(min_delay, max_delay))
    await sleep(delay)
    return delay


def build_search_payload(options: SearchOptions, items: List[Post]) -> SearchPayload:
    """Tag, truncate and count search items."""
    return SearchPayload(
        type=SearchType.from_request(options.type),
        items=items[:options.limit],
        total_count=len(items),
        has_more=len(items) > options.limit,
    )


class ScrapePipeline:
    """
    Shared fetch/parse scaffolding for backends that obtain markup.

    Order per request: result-cache lookup, rate-limiter slot (skipped on
    a raw-markup cache hit), fetch, parse, result-cache store, envelope.
    Failures of any step come back as failure envelopes.
    """

    def __init__(self, name: str, context: ScraperContext):
        self.name = name
        self.context = context

    async def request(self, operation: Callable[[], Awaitable[Any]]) -> Any:
        """Run ``operation`` once a rate-limiter slot is granted."""
        await self.context.rate_limiter.acquire()
        return await operation()

    async def fetch_markup(self, target: str, fetch: Callable[[], Awaitable[str]]) -> str:
        """
        Fetch markup through the raw-markup cache.

        Raises:
            EmptyResponseError: if the markup is too short to hold content
        """

        async def load() -> str:
            markup = await self.request(fetch)
            if not markup or len(markup.strip()) < MIN_MARKUP_LENGTH:
                raise EmptyResponseError(
                    f"Empty response from {self.name} ({len(markup or '')} chars)"
                )
            return markup

        return await self.context.html_cache.get_or_set(self._markup_key(target), load)

    def _markup_key(self, target: str) -> str:
        return Cache.generate_key(f"{self.name}:{target}")

    async def fetch_posts(self, target: str, fetch: Callable[[], Awaitable[str]]) -> Tuple[str, List[Post]]:
        """
        Fetch markup for ``target`` and parse its posts.

        Markup that yields no posts (login walls, block pages) is evicted
        from the raw-markup cache so the next attempt refetches.

        Raises:
            EmptyResponseError: if the markup is too short or has no posts
        """
        markup = await self.fetch_markup(target, fetch)
        posts = self.context.parser.parse_posts(markup)
        if not posts:
            self.context.html_cache.delete(self._markup_key(target))
            raise EmptyResponseError(f"No posts found at {target}")
        return markup, posts

    async def scrape(
        self,
        url: str,
        options: ScrapeOptions,
        fetch: Callable[[], Awaitable[str]],
    ) -> ScrapeResult:
        """
        Fetch ``url`` with ``fetch`` and parse posts (and comments).

        Args:
            url: Target URL (cache key and metadata target)
            options: Scrape options
            fetch: Zero-argument coroutine factory returning markup
        """
        started = time.monotonic()
        key = Cache.generate_key(f"{self.name}:{url}", options.cache_fields())

        cached = self.context.scrape_cache.get(key)
        if cached is not None:
            logger.info(f"[{self.name}] Cache hit for {url}")
            return cached

        logger.info(f"[{self.name}] Scraping {url}")
        try:
            markup, posts = await self.fetch_posts(url, fetch)
            comments = self.context.parser.parse_comments(markup) if options.include_comments else None
        except Exception as e:
            logger.warning(f"[{self.name}] Scrape failed for {url}: {e}")
            return error_result(self.name, e, url, started)

        result = ScrapeResult(
            kind=ResultKind.SUCCESS,
            adapter_used=self.name,
            data=posts[:options.limit],
            comments=comments,
            metadata=result_metadata(url, started),
        )
        self.context.scrape_cache.set(key, result)
        logger.info(f"[{self.name}] Scraped {len(result.data)} posts from {url}")
        return result

    async def search(
        self,
        query: str,
        options: SearchOptions,
        collect: Callable[[], Awaitable[List[Post]]],
    ) -> SearchResult:
        """
        Run a search; ``collect`` returns every item found for ``query``.
        """
        started = time.monotonic()
        key = Cache.generate_key(f"{self.name}:search:{query}", options.cache_fields())

        cached = self.context.search_cache.get(key)
        if cached is not None:
            logger.info(f"[{self.name}] Cache hit for search {query!r}")
            return cached

        logger.info(f"[{self.name}] Searching {options.type} for {query!r}")
        try:
            items = await collect()
        except Exception as e:
            logger.warning(f"[{self.name}] Search failed for {query!r}: {e}")
            return search_error_result(self.name, e, query, started)

        result = SearchResult(
            kind=ResultKind.SUCCESS,
            adapter_used=self.name,
            data=build_search_payload(options, items),
            metadata=result_metadata(query, started),
        )
        self.context.search_cache.set(key, result)
        return result


def describe(backend: ScrapeBackend) -> Dict[str, Any]:
    """Status entry for one backend."""
    return {
        "name": backend.name,
        "available": backend.is_available(),
        "capabilities": backend.capabilities.to_dict(),
    }
