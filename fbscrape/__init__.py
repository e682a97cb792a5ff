"""
fbscrape - Resilient Facebook Public Content Scraper

Scrapes posts, pages, comments and search results from public Facebook
content through several interchangeable backends:
- Bright Data unlocker API (preferred when a token is configured)
- Firecrawl scrape/search API
- Delegated browser instructions for a co-located Playwright MCP
- In-process Playwright Chromium (always available)

Features:
- Priority-ordered backend fallback with per-backend isolation
- Declarative selector cascade across the mbasic and full-site markup
- Blind text fallback so parsing degrades instead of failing
- Sliding-window rate limiting, retry with backoff and jitter
- TTL caches for results, searches and raw markup
"""

__version__ = "1.0.0"
__author__ = "fbscrape"

from .config import Config
from .context import ScraperContext
from .detector import BackendDetector
from .parser import FacebookParser, Dialect, classify_dialect, parse_abbreviated_number
from .cache import Cache
from .rate_limiter import RateLimiter, rate_limited
from .retry import RetryOptions, with_retry, fetch_with_retry, create_retryable, is_retryable
from .models import (
    Post,
    Page,
    Comment,
    SearchPayload,
    SearchType,
    DetectedBackend,
    ScrapeOptions,
    SearchOptions,
    ScrapeResult,
    SearchResult,
    ResultKind,
    DelegationInstructions,
)
from .errors import (
    ScraperError,
    ConfigurationError,
    TransportError,
    EmptyResponseError,
    ParseError,
    ExhaustionError,
)
from .backends import (
    ScrapeBackend,
    BackendType,
    BackendCapabilities,
    BrightDataBackend,
    FirecrawlBackend,
    PlaywrightMCPBackend,
    StandaloneBackend,
)
from .orchestrator import Orchestrator
from .tools import ScraperTools

__all__ = [
    "Config",
    "ScraperContext",
    "BackendDetector",
    "FacebookParser",
    "Dialect",
    "classify_dialect",
    "parse_abbreviated_number",
    "Cache",
    "RateLimiter",
    "rate_limited",
    "RetryOptions",
    "with_retry",
    "fetch_with_retry",
    "create_retryable",
    "is_retryable",
    "Post",
    "Page",
    "Comment",
    "SearchPayload",
    "SearchType",
    "DetectedBackend",
    "ScrapeOptions",
    "SearchOptions",
    "ScrapeResult",
    "SearchResult",
    "ResultKind",
    "DelegationInstructions",
    "ScraperError",
    "ConfigurationError",
    "TransportError",
    "EmptyResponseError",
    "ParseError",
    "ExhaustionError",
    "ScrapeBackend",
    "BackendType",
    "BackendCapabilities",
    "BrightDataBackend",
    "FirecrawlBackend",
    "PlaywrightMCPBackend",
    "StandaloneBackend",
    "Orchestrator",
    "ScraperTools",
]
