"""
Backend orchestration.

Runs scrape and search requests across the detected backends in priority
order, falling back sequentially until one succeeds. A caller-forced
strategy bypasses the fallback loop entirely.
"""

import logging
import time
from dataclasses import replace
from typing import Awaitable, Callable, Dict, List, Optional, TypeVar

from .backends import (
    BrightDataBackend,
    FirecrawlBackend,
    PlaywrightMCPBackend,
    ScrapeBackend,
    StandaloneBackend,
    error_result,
    search_error_result,
)
from .context import ScraperContext
from .detector import FALLBACK_BACKEND
from .errors import ConfigurationError, ExhaustionError
from .models import DetectedBackend, ScrapeOptions, ScrapeResult, SearchOptions, SearchResult

logger = logging.getLogger(__name__)

R = TypeVar("R", ScrapeResult, SearchResult)

BackendFactory = Callable[[ScraperContext], ScrapeBackend]

DEFAULT_FACTORIES: Dict[str, BackendFactory] = {
    "brightdata": BrightDataBackend,
    "firecrawl": FirecrawlBackend,
    "playwright-mcp": PlaywrightMCPBackend,
    "standalone": StandaloneBackend,
}


class Orchestrator:
    """
    Owns the backend instances and the fallback loop.

    Usage:
        orchestrator = Orchestrator(ScraperContext.create())
        result = await orchestrator.scrape_page("https://www.facebook.com/nasa")
        await orchestrator.cleanup()
    """

    def __init__(
        self,
        context: ScraperContext,
        factories: Optional[Dict[str, BackendFactory]] = None,
    ):
        self.context = context
        self.factories = dict(factories if factories is not None else DEFAULT_FACTORIES)
        self._backends: Dict[str, ScrapeBackend] = {}
        self._initialized = False

    def initialize(self) -> None:
        """Detect backends once and instantiate the available ones in priority order."""
        if self._initialized:
            return

        for detected in self.context.detector.detect():
            if not detected.available:
                continue
            factory = self.factories.get(detected.name)
            if factory is None:
                logger.warning(f"No implementation registered for backend {detected.name}")
                continue
            self._backends[detected.name] = factory(self.context)

        self._initialized = True
        logger.info(f"Backend priority: {' -> '.join(self._backends) or '(none)'}")

    @property
    def backend_order(self) -> List[str]:
        self.initialize()
        return list(self._backends)

    def get_backend(self, name: str) -> Optional[ScrapeBackend]:
        self.initialize()
        return self._backends.get(name)

    def get_available_backends(self) -> List[DetectedBackend]:
        return self.context.detector.get_available()

    def _forced_strategy(self, strategy: Optional[str]) -> Optional[str]:
        strategy = strategy or self.context.config.default_strategy
        return None if strategy == "auto" else strategy

    async def _execute(
        self,
        target: str,
        strategy: Optional[str],
        invoke: Callable[[ScrapeBackend], Awaitable[R]],
        failure: Callable[..., R],
        exhausted_message: str,
    ) -> R:
        self.initialize()
        started = time.monotonic()

        forced = self._forced_strategy(strategy)
        if forced:
            backend = self._backends.get(forced)
            if backend is None:
                logger.warning(f"Forced backend {forced} is not available")
                return failure(
                    forced,
                    ConfigurationError(f"Backend '{forced}' is not available"),
                    target,
                    started,
                )
            try:
                return await invoke(backend)
            except Exception as e:
                logger.error(f"Forced backend {forced} raised: {e}")
                return failure(forced, e, target, started)

        for name, backend in self._backends.items():
            try:
                result = await invoke(backend)
            except Exception as e:
                logger.warning(f"Backend {name} raised, falling back: {e}")
                continue

            if result.success:
                return result
            logger.info(f"Backend {name} failed ({result.error}), falling back")

        logger.error(f"{exhausted_message}: {target}")
        return failure(FALLBACK_BACKEND, ExhaustionError(exhausted_message), target, started)

    async def scrape(self, url: str, options: Optional[ScrapeOptions] = None) -> ScrapeResult:
        """
        Scrape ``url`` with the first backend that succeeds.

        A strategy other than "auto" (from options or config) runs only
        that backend; an unavailable forced backend yields a failure
        envelope attributed to it, with no fallback.
        """
        options = options or ScrapeOptions()
        return await self._execute(
            url,
            options.strategy,
            lambda backend: backend.scrape_url(url, options),
            error_result,
            "All adapters failed",
        )

    async def scrape_page(self, url: str, options: Optional[ScrapeOptions] = None) -> ScrapeResult:
        return await self.scrape(url, options)

    async def scrape_post(self, url: str, options: Optional[ScrapeOptions] = None) -> ScrapeResult:
        return await self.scrape(url, options)

    async def scrape_comments(self, url: str, options: Optional[ScrapeOptions] = None) -> ScrapeResult:
        return await self.scrape(url, replace(options or ScrapeOptions(), include_comments=True))

    async def search(self, query: str, options: Optional[SearchOptions] = None) -> SearchResult:
        """Search with the same fallback rules as scrape()."""
        options = options or SearchOptions()
        return await self._execute(
            query,
            options.strategy,
            lambda backend: backend.search(query, options),
            search_error_result,
            "All adapters failed for search",
        )

    async def cleanup(self) -> None:
        """Run every backend's teardown hook."""
        for name, backend in self._backends.items():
            teardown = getattr(backend, "cleanup", None)
            if teardown is None:
                continue
            try:
                await teardown()
            except Exception as e:
                logger.warning(f"Cleanup of {name} failed: {e}")
