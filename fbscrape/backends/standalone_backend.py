"""
Standalone Backend - In-Process Browser

Drives a local Chromium through Playwright. Always available and tried
last. One browser process is launched lazily per backend and shared;
every call gets its own isolated stealth context, closed when the call
ends.

Limitations:
- Subject to login walls and IP blocking
- Slow (full browser render plus humanizing delays)
"""

import asyncio
import logging
from typing import Optional
from urllib.parse import quote, quote_plus

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from ..context import ScraperContext
from ..models import ScrapeOptions, ScrapeResult, SearchOptions, SearchResult
from ..retry import with_retry
from ..urls import to_mbasic_url
from .base import BackendCapabilities, BackendType, ScrapePipeline, random_delay

logger = logging.getLogger(__name__)


STANDALONE_CAPABILITIES = BackendCapabilities(
    local_browser=True,
    javascript_rendering=True,
    anti_blocking=False,
    structured_search=True,
    comments=True,
)

LAUNCH_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--disable-infobars",
    "--no-first-run",
    "--no-default-browser-check",
]

# Runs before any page script in every new document
STEALTH_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
Object.defineProperty(navigator, 'plugins', {
    get: () => [
        { name: 'Chrome PDF Plugin', filename: 'internal-pdf-viewer' },
        { name: 'Chrome PDF Viewer', filename: 'mhjfbmdgcfjbbpaeojofohoefgiehjai' },
        { name: 'Native Client', filename: 'internal-nacl-plugin' },
    ],
});
Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
window.chrome = window.chrome || { runtime: {} };
"""

CLOSE_SELECTORS = [
    '[aria-label="Close"]',
    '[aria-label="Decline optional cookies"]',
    'div[role="dialog"] div[role="button"][aria-label*="close" i]',
    'a[data-sigil="close"]',
    'button:has-text("Not now")',
]

SCROLL_STEPS = 3


class StandaloneBackend:
    """
    Local Playwright backend.

    Usage:
        backend = StandaloneBackend(context)
        result = await backend.scrape_url("https://www.facebook.com/nasa")
        await backend.cleanup()
    """

    SEARCH_URL = "https://{host}/search/{type}/?q={query}"
    backend_type = BackendType.STANDALONE

    def __init__(self, context: ScraperContext):
        self.context = context
        self.config = context.config
        self.pipeline = ScrapePipeline(self.name, context)
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._lock: Optional[asyncio.Lock] = None

    @property
    def name(self) -> str:
        return self.backend_type.value

    @property
    def capabilities(self) -> BackendCapabilities:
        return STANDALONE_CAPABILITIES

    def is_available(self) -> bool:
        return True

    async def _get_browser(self) -> Browser:
        """Launch Chromium on first use; later calls share it."""
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            if self._browser is None or not self._browser.is_connected():
                if self._playwright is None:
                    self._playwright = await async_playwright().start()
                self._browser = await self._playwright.chromium.launch(
                    headless=self.config.headless,
                    args=LAUNCH_ARGS,
                )
                logger.info(f"Launched Chromium (headless={self.config.headless})")
            return self._browser

    async def _new_context(self, browser: Browser) -> BrowserContext:
        """Fresh isolated session with a realistic fingerprint."""
        language = self.config.locale.split("-")[0]
        context = await browser.new_context(
            viewport=self.config.viewport,
            user_agent=self.config.user_agent,
            locale=self.config.locale,
            timezone_id=self.config.timezone_id,
            extra_http_headers={
                "Accept-Language": f"{self.config.locale},{language};q=0.9",
            },
        )
        await context.add_init_script(STEALTH_SCRIPT)
        return context

    async def _dismiss_login_wall(self, page: Page) -> None:
        """Best effort: every step may fail without affecting the scrape."""
        try:
            await page.wait_for_timeout(1000)
            await page.keyboard.press("Escape")
        except Exception as e:
            logger.debug(f"Escape dismissal failed: {e}")

        try:
            await page.mouse.click(10, 10)
        except Exception as e:
            logger.debug(f"Off-canvas click failed: {e}")

        for selector in CLOSE_SELECTORS:
            try:
                button = page.locator(selector).first
                if await button.count():
                    await button.click(timeout=1000)
            except Exception as e:
                logger.debug(f"Close button {selector} not clickable: {e}")

    async def _scroll(self, page: Page) -> None:
        for _ in range(SCROLL_STEPS):
            await page.evaluate("window.scrollBy(0, window.innerHeight)")
            await page.wait_for_timeout(1000)

    async def _fetch(self, url: str, timeout: float) -> str:
        """Render ``url`` in a fresh context and return the page markup."""
        browser = await self._get_browser()
        context = await self._new_context(browser)
        try:
            page = await context.new_page()
            await page.goto(url, wait_until="domcontentloaded", timeout=timeout * 1000)
            await random_delay(self.config.delay_min, self.config.delay_max)
            await self._dismiss_login_wall(page)
            await self._scroll(page)
            return await page.content()
        finally:
            await context.close()

    def _fetcher(self, url: str, timeout: float):
        return lambda: with_retry(lambda: self._fetch(url, timeout), self.context.retry_options())

    async def scrape_url(self, url: str, options: Optional[ScrapeOptions] = None) -> ScrapeResult:
        options = options or ScrapeOptions()
        target = to_mbasic_url(url) if self.config.use_mbasic else url
        timeout = options.timeout or self.config.timeout
        return await self.pipeline.scrape(url, options, self._fetcher(target, timeout))

    async def search(self, query: str, options: Optional[SearchOptions] = None) -> SearchResult:
        options = options or SearchOptions()
        timeout = options.timeout or self.config.timeout
        host = "mbasic.facebook.com" if self.config.use_mbasic else "www.facebook.com"
        search_url = self.SEARCH_URL.format(host=host, type=quote(options.type), query=quote_plus(query))

        async def collect():
            _, posts = await self.pipeline.fetch_posts(search_url, self._fetcher(search_url, timeout))
            return posts

        return await self.pipeline.search(query, options, collect)

    async def cleanup(self) -> None:
        """Close the shared browser and stop Playwright."""
        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as e:
                logger.debug(f"Browser close failed: {e}")
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
        logger.info("StandaloneBackend closed")
