"""
Backend detection.

Decides which backends are usable from the configuration. Priorities are
fixed: managed unblocker first, generic managed scraping second,
delegated browser control third, in-process browser last (always
available).
"""

import logging
from typing import List, Optional

from .config import Config
from .models import DetectedBackend

logger = logging.getLogger(__name__)

FALLBACK_BACKEND = "standalone"


class BackendDetector:
    """
    Memoized backend detection.

    ``detect()`` consults the configuration once; later calls return the
    same list until ``reset()``.
    """

    def __init__(self, config: Config):
        self.config = config
        self._detected: Optional[List[DetectedBackend]] = None

    def detect(self) -> List[DetectedBackend]:
        """Return all backends, ordered by priority (lower first)."""
        if self._detected is not None:
            return self._detected

        config = self.config
        detected = [
            DetectedBackend(
                name="brightdata",
                available=bool(config.brightdata_token),
                priority=1,
                reason=(
                    "BRIGHTDATA_API_TOKEN found"
                    if config.brightdata_token
                    else "BRIGHTDATA_API_TOKEN not set"
                ),
            ),
            DetectedBackend(
                name="firecrawl",
                available=bool(config.firecrawl_api_key),
                priority=2,
                reason=(
                    "FIRECRAWL_API_KEY found"
                    if config.firecrawl_api_key
                    else "FIRECRAWL_API_KEY not set"
                ),
            ),
            DetectedBackend(
                name="playwright-mcp",
                available=config.playwright_mcp_enabled,
                priority=3,
                reason=(
                    "PLAYWRIGHT_MCP_ENABLED=true"
                    if config.playwright_mcp_enabled
                    else "PLAYWRIGHT_MCP_ENABLED not set"
                ),
            ),
            DetectedBackend(
                name="standalone",
                available=True,
                priority=4,
                reason="Built-in Playwright fallback (always available)",
            ),
        ]
        detected.sort(key=lambda b: b.priority)

        for backend in detected:
            mark = "+" if backend.available else "-"
            logger.info(f"[{mark}] {backend.name} (priority {backend.priority}): {backend.reason}")

        self._detected = detected
        return detected

    def get_detected(self) -> List[DetectedBackend]:
        return self.detect()

    def get_available(self) -> List[DetectedBackend]:
        return [b for b in self.detect() if b.available]

    def is_available(self, name: str) -> bool:
        return any(b.name == name and b.available for b in self.detect())

    def get_first(self) -> str:
        """Name of the highest-priority available backend."""
        available = self.get_available()
        return available[0].name if available else FALLBACK_BACKEND

    def reset(self) -> None:
        """Forget the memoized result; the next detect() re-reads config."""
        self._detected = None
