"""
fbscrape Backend System

Pluggable backends, in priority order:
- BrightDataBackend: managed unblocker API (token required)
- FirecrawlBackend: managed scraping API (key required)
- PlaywrightMCPBackend: delegated browser instructions (flag required)
- StandaloneBackend: in-process Playwright (always available)
"""

from .base import (
    BackendCapabilities,
    BackendType,
    ScrapeBackend,
    ScrapePipeline,
    error_result,
    random_delay,
    scrape_comments,
    scrape_page,
    scrape_post,
    search_error_result,
)
from .brightdata_backend import BrightDataBackend
from .firecrawl_backend import FirecrawlBackend
from .playwright_mcp_backend import PlaywrightMCPBackend, build_instructions
from .standalone_backend import StandaloneBackend

__all__ = [
    "BackendCapabilities",
    "BackendType",
    "ScrapeBackend",
    "ScrapePipeline",
    "error_result",
    "search_error_result",
    "random_delay",
    "scrape_page",
    "scrape_post",
    "scrape_comments",
    "build_instructions",
    "BrightDataBackend",
    "FirecrawlBackend",
    "PlaywrightMCPBackend",
    "StandaloneBackend",
]
