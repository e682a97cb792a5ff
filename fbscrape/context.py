"""
Scraper context.

Holds the process-wide collaborators (config, detector, parser, shared
rate limiter and caches). Built once at start-up and passed explicitly to
the orchestrator and every backend.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .cache import Cache
from .config import Config
from .detector import BackendDetector
from .parser import FacebookParser
from .rate_limiter import RateLimiter
from .retry import RetryOptions

logger = logging.getLogger(__name__)

SCRAPE_CACHE_TTL = 600.0
SCRAPE_CACHE_SIZE = 500
SEARCH_CACHE_TTL = 300.0
SEARCH_CACHE_SIZE = 200
HTML_CACHE_TTL = 120.0
HTML_CACHE_SIZE = 100


@dataclass
class ScraperContext:
    config: Config
    detector: BackendDetector
    parser: FacebookParser
    rate_limiter: RateLimiter
    scrape_cache: Cache
    search_cache: Cache
    html_cache: Cache

    @classmethod
    def create(cls, config: Optional[Config] = None, cleanup_interval: Optional[float] = 60.0) -> "ScraperContext":
        """
        Build a context with fresh collaborators.

        Args:
            config: Configuration (defaults to Config.from_env())
            cleanup_interval: Cache sweep period; None disables the
                background sweepers (useful in tests)
        """
        config = config or Config.from_env()
        return cls(
            config=config,
            detector=BackendDetector(config),
            parser=FacebookParser(),
            rate_limiter=RateLimiter(
                requests_per_second=config.requests_per_second,
                requests_per_minute=config.requests_per_minute,
                min_interval=config.min_request_interval,
            ),
            scrape_cache=Cache(
                default_ttl=SCRAPE_CACHE_TTL,
                max_entries=SCRAPE_CACHE_SIZE,
                cleanup_interval=cleanup_interval,
                name="scrape",
            ),
            search_cache=Cache(
                default_ttl=SEARCH_CACHE_TTL,
                max_entries=SEARCH_CACHE_SIZE,
                cleanup_interval=cleanup_interval,
                name="search",
            ),
            html_cache=Cache(
                default_ttl=HTML_CACHE_TTL,
                max_entries=HTML_CACHE_SIZE,
                cleanup_interval=cleanup_interval,
                name="html",
            ),
        )

    def retry_options(self) -> RetryOptions:
        """Retry policy derived from the configuration."""
        return RetryOptions(max_retries=self.config.max_retries)

    def close(self) -> None:
        """Stop the cache sweepers."""
        for cache in (self.scrape_cache, self.search_cache, self.html_cache):
            cache.stop_cleanup()
        logger.debug("Scraper context closed")
