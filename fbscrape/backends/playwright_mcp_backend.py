"""
Playwright MCP Backend - Delegated Browser Control

Never fetches. When a co-located browser capability is available, this
backend returns a machine-readable plan (navigate, wait, dismiss the
login overlay, scroll, snapshot) for the caller to execute, followed by
an extract-data call with the captured markup.
"""

import logging
import time
from typing import Optional
from urllib.parse import quote, quote_plus

from ..context import ScraperContext
from ..errors import ConfigurationError
from ..models import (
    DelegationInstructions,
    InstructionStep,
    ResultKind,
    ScrapeOptions,
    ScrapeResult,
    SearchOptions,
    SearchResult,
)
from ..urls import to_mbasic_url
from .base import (
    BackendCapabilities,
    BackendType,
    result_metadata,
    error_result,
    search_error_result,
)

logger = logging.getLogger(__name__)


PLAYWRIGHT_MCP_CAPABILITIES = BackendCapabilities(
    delegated=True,
    javascript_rendering=True,
    anti_blocking=False,
    structured_search=True,
    comments=True,
)

EXTRACT_TOOL = "fb_extract_data"
DELEGATION_MESSAGE = (
    "Browser automation must run in the caller: execute the instructions, "
    f"then pass the captured HTML to {EXTRACT_TOOL}"
)


def build_instructions(target_url: str, extract_type: str = "posts") -> DelegationInstructions:
    """Plan for an external browser to capture ``target_url``."""
    return DelegationInstructions(
        target_url=target_url,
        steps=[
            InstructionStep("navigate", {"url": target_url}, "Open the target page"),
            InstructionStep("wait", {"seconds": 2.0}, "Let the page settle"),
            InstructionStep("press_key", {"key": "Escape"}, "Dismiss the login overlay"),
            InstructionStep("scroll", {"direction": "down", "times": 3}, "Load more content"),
            InstructionStep("snapshot", {"format": "html"}, "Capture the rendered HTML"),
        ],
        follow_up={"tool": EXTRACT_TOOL, "arguments": {"type": extract_type}},
    )


class PlaywrightMCPBackend:
    """Delegated-instruction backend; enabled by PLAYWRIGHT_MCP_ENABLED=true."""

    SEARCH_URL = "https://www.facebook.com/search/{type}/?q={query}"
    backend_type = BackendType.PLAYWRIGHT_MCP

    def __init__(self, context: ScraperContext):
        self.context = context
        self.config = context.config

    @property
    def name(self) -> str:
        return self.backend_type.value

    @property
    def capabilities(self) -> BackendCapabilities:
        return PLAYWRIGHT_MCP_CAPABILITIES

    def is_available(self) -> bool:
        return self.config.playwright_mcp_enabled

    async def scrape_url(self, url: str, options: Optional[ScrapeOptions] = None) -> ScrapeResult:
        options = options or ScrapeOptions()
        started = time.monotonic()
        if not self.is_available():
            return error_result(self.name, ConfigurationError("PLAYWRIGHT_MCP_ENABLED not set"), url)

        target = to_mbasic_url(url) if self.config.use_mbasic else url
        extract_type = "comments" if options.include_comments else "posts"
        logger.info(f"[{self.name}] Delegating browser capture of {target}")

        return ScrapeResult(
            kind=ResultKind.DELEGATION_REQUIRED,
            adapter_used=self.name,
            error=DELEGATION_MESSAGE,
            metadata=result_metadata(url, started),
            instructions=build_instructions(target, extract_type),
        )

    async def search(self, query: str, options: Optional[SearchOptions] = None) -> SearchResult:
        options = options or SearchOptions()
        started = time.monotonic()
        if not self.is_available():
            return search_error_result(self.name, ConfigurationError("PLAYWRIGHT_MCP_ENABLED not set"), query)

        search_url = self.SEARCH_URL.format(type=quote(options.type), query=quote_plus(query))
        return SearchResult(
            kind=ResultKind.DELEGATION_REQUIRED,
            adapter_used=self.name,
            error=DELEGATION_MESSAGE,
            metadata=result_metadata(query, started),
            instructions=build_instructions(search_url, "posts"),
        )
