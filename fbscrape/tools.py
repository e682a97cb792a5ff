"""
Tool-style call/response boundary.

Each tool takes a JSON-like argument object, validated by a pydantic
request model, and returns a JSON-serializable dict. Handlers never
raise: invalid arguments and unexpected errors come back as
``{"success": False, "error": ...}``.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Literal, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from . import __version__
from .backends.base import describe
from .config import Config
from .context import ScraperContext
from .models import ResultKind, ScrapeOptions, ScrapeResult, SearchOptions
from .orchestrator import Orchestrator
from .urls import parse_facebook_url

logger = logging.getLogger(__name__)

Strategy = Literal["auto", "brightdata", "firecrawl", "playwright-mcp", "standalone"]
SearchKind = Literal["posts", "pages", "groups", "events", "marketplace"]
ExtractKind = Literal["posts", "page", "comments"]


def _require_http_url(value: str) -> str:
    url = (value or "").strip()
    if not url.startswith(("http://", "https://")):
        raise ValueError("must be an absolute http(s) URL")
    return url


class _Request(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class ScrapePageRequest(_Request):
    page_url: str
    limit: int = Field(20, ge=1, le=50)
    strategy: Optional[Strategy] = None

    @field_validator("page_url")
    @classmethod
    def _page_url_must_be_http(cls, v: str) -> str:
        return _require_http_url(v)


class ScrapePostRequest(_Request):
    post_url: str
    include_comments: bool = False
    strategy: Optional[Strategy] = None

    @field_validator("post_url")
    @classmethod
    def _post_url_must_be_http(cls, v: str) -> str:
        return _require_http_url(v)


class ScrapeCommentsRequest(_Request):
    post_url: str
    limit: int = Field(50, ge=1, le=100)
    strategy: Optional[Strategy] = None

    @field_validator("post_url")
    @classmethod
    def _post_url_must_be_http(cls, v: str) -> str:
        return _require_http_url(v)


class SearchRequest(_Request):
    query: str = Field(..., min_length=1, max_length=500)
    type: SearchKind = "posts"
    limit: int = Field(10, ge=1, le=50)
    strategy: Optional[Strategy] = None


class StatusRequest(_Request):
    pass


class ParseUrlRequest(_Request):
    url: str = Field(..., min_length=1)


class ExtractDataRequest(_Request):
    html: str
    type: ExtractKind = "posts"


Handler = Callable[[Any], Awaitable[Dict[str, Any]]]


class ScraperTools:
    """
    Tool handlers over one orchestrator.

    Usage:
        tools = ScraperTools.create()
        result = await tools.call("fb_scrape_page", {"page_url": url, "limit": 5})
        await tools.close()
    """

    def __init__(self, orchestrator: Orchestrator):
        self.orchestrator = orchestrator
        self.context = orchestrator.context
        self._tools: Dict[str, Tuple[Type[BaseModel], Handler]] = {
            "fb_search": (SearchRequest, self.search),
            "fb_scrape_page": (ScrapePageRequest, self.scrape_page),
            "fb_scrape_post": (ScrapePostRequest, self.scrape_post),
            "fb_scrape_comments": (ScrapeCommentsRequest, self.scrape_comments),
            "fb_status": (StatusRequest, self.status),
            "fb_parse_url": (ParseUrlRequest, self.parse_url),
            "fb_extract_data": (ExtractDataRequest, self.extract_data),
        }

    @classmethod
    def create(cls, config: Optional[Config] = None) -> "ScraperTools":
        return cls(Orchestrator(ScraperContext.create(config)))

    @property
    def tool_names(self):
        return list(self._tools)

    async def call(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Validate ``arguments`` and dispatch to the named tool."""
        entry = self._tools.get(name)
        if entry is None:
            return {"success": False, "error": f"Unknown tool: {name}"}

        model, handler = entry
        try:
            request = model.model_validate(arguments or {})
        except ValidationError as e:
            return {"success": False, "error": f"Invalid arguments for {name}: {e}"}

        try:
            return await handler(request)
        except Exception as e:
            logger.exception(f"Tool {name} failed")
            return {"success": False, "error": str(e)}

    async def scrape_page(self, request: ScrapePageRequest) -> Dict[str, Any]:
        result = await self.orchestrator.scrape_page(
            request.page_url,
            ScrapeOptions(limit=request.limit, strategy=request.strategy),
        )
        return result.to_dict()

    async def scrape_post(self, request: ScrapePostRequest) -> Dict[str, Any]:
        result = await self.orchestrator.scrape_post(
            request.post_url,
            ScrapeOptions(include_comments=request.include_comments, strategy=request.strategy),
        )
        return result.to_dict()

    async def scrape_comments(self, request: ScrapeCommentsRequest) -> Dict[str, Any]:
        result = await self.orchestrator.scrape_comments(
            request.post_url,
            ScrapeOptions(strategy=request.strategy),
        )
        if result.kind is not ResultKind.SUCCESS:
            return result.to_dict()

        return ScrapeResult(
            kind=result.kind,
            adapter_used=result.adapter_used,
            data=(result.comments or [])[:request.limit],
            metadata=result.metadata,
        ).to_dict()

    async def search(self, request: SearchRequest) -> Dict[str, Any]:
        result = await self.orchestrator.search(
            request.query,
            SearchOptions(type=request.type, limit=request.limit, strategy=request.strategy),
        )
        return result.to_dict()

    async def status(self, request: Optional[StatusRequest] = None) -> Dict[str, Any]:
        """Detected backends, priority order, capabilities and config flags."""
        config = self.context.config
        order = self.orchestrator.backend_order
        return {
            "success": True,
            "name": "fbscrape",
            "version": __version__,
            "backends": [b.to_dict() for b in self.context.detector.detect()],
            "priority_order": order,
            "capabilities": {
                name: describe(self.orchestrator.get_backend(name)) for name in order
            },
            "config": {
                "brightdata_configured": bool(config.brightdata_token),
                "firecrawl_configured": bool(config.firecrawl_api_key),
                "playwright_mcp_enabled": config.playwright_mcp_enabled,
                "default_strategy": config.default_strategy,
                "use_mbasic": config.use_mbasic,
                "headless": config.headless,
            },
            "rate_limiter": self.context.rate_limiter.status(),
        }

    async def parse_url(self, request: ParseUrlRequest) -> Dict[str, Any]:
        try:
            info = parse_facebook_url(request.url)
        except ValueError as e:
            return {"success": False, "error": str(e)}
        return {"success": True, **info, "simplified_markup_url": info["mbasic_url"]}

    async def extract_data(self, request: ExtractDataRequest) -> Dict[str, Any]:
        """Parse supplied markup; no network access."""
        parser = self.context.parser

        if request.type == "page":
            page = parser.parse_page(request.html)
            data: Any = page.to_dict() if page else None
            count = 1 if page else 0
        elif request.type == "comments":
            comments = parser.parse_comments(request.html)
            data = [c.to_dict() for c in comments]
            count = len(comments)
        else:
            posts = parser.parse_posts(request.html)
            data = [p.to_dict() for p in posts]
            count = len(posts)

        return {"success": True, "type": request.type, "data": data, "items_count": count}

    async def close(self) -> None:
        """Tear down backends and stop the cache sweepers."""
        await self.orchestrator.cleanup()
        self.context.close()
