"""
Configuration for fbscrape.

Supports loading from environment variables and config files.
"""

import os
import json
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional, List, Mapping

from .errors import ConfigurationError


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

STRATEGIES = ("auto", "brightdata", "firecrawl", "playwright-mcp", "standalone")


def _env_flag(env: Mapping[str, str], key: str, default: bool) -> bool:
    value = env.get(key)
    if value is None or value == "":
        return default
    if default:
        # Opt-out flags: anything but "false" keeps them on
        return value.strip().lower() != "false"
    return value.strip().lower() == "true"


def _env_int(env: Mapping[str, str], key: str, default: int, errors: List[str]) -> int:
    value = env.get(key)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        errors.append(f"{key} must be an integer (got {value!r})")
        return default


def _env_ms(env: Mapping[str, str], key: str, default_ms: int, errors: List[str]) -> float:
    return _env_int(env, key, default_ms, errors) / 1000.0


@dataclass
class Config:
    """
    fbscrape configuration with sensible defaults.

    Credentials decide which remote backends are usable. All timing
    values are in seconds and tuned to stay well under the upstream's
    blocking thresholds.
    """

    # Backend credentials / toggles
    brightdata_token: Optional[str] = None
    brightdata_zone: str = "mcp_unlocker"
    firecrawl_api_key: Optional[str] = None
    firecrawl_base_url: str = "https://api.firecrawl.dev/v1"
    playwright_mcp_enabled: bool = False

    # Strategy
    default_strategy: str = "auto"
    headless: bool = True
    timeout: float = 30.0  # Per navigation/fetch call
    max_retries: int = 3

    # Humanizing delays
    delay_min: float = 2.0
    delay_max: float = 5.0

    # Rate limiting
    requests_per_second: int = 1
    requests_per_minute: int = 20
    min_request_interval: float = 0.5

    # Browser fingerprint
    use_mbasic: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    viewport_width: int = 1920
    viewport_height: int = 1080
    locale: str = "en-US"
    timezone_id: str = "America/New_York"

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """
        Load configuration from environment variables.

        Raises:
            ConfigurationError: listing every numeric variable that is not an integer
        """
        env = os.environ if environ is None else environ
        errors: List[str] = []
        config = cls(
            brightdata_token=(env.get("BRIGHTDATA_API_TOKEN") or "").strip() or None,
            brightdata_zone=env.get("BRIGHTDATA_ZONE", "mcp_unlocker"),
            firecrawl_api_key=(env.get("FIRECRAWL_API_KEY") or "").strip() or None,
            firecrawl_base_url=env.get("FIRECRAWL_BASE_URL", "https://api.firecrawl.dev/v1"),
            playwright_mcp_enabled=_env_flag(env, "PLAYWRIGHT_MCP_ENABLED", False),
            default_strategy=env.get("DEFAULT_STRATEGY") or "auto",
            headless=_env_flag(env, "HEADLESS", True),
            timeout=_env_ms(env, "TIMEOUT", 30000, errors),
            max_retries=_env_int(env, "MAX_RETRIES", 3, errors),
            delay_min=_env_ms(env, "DELAY_MIN_MS", 2000, errors),
            delay_max=_env_ms(env, "DELAY_MAX_MS", 5000, errors),
            requests_per_second=_env_int(env, "FBSCRAPE_RPS", 1, errors),
            requests_per_minute=_env_int(env, "FBSCRAPE_RPM", 20, errors),
            min_request_interval=_env_ms(env, "FBSCRAPE_MIN_INTERVAL_MS", 500, errors),
            use_mbasic=_env_flag(env, "USE_MBASIC", True),
            user_agent=env.get("USER_AGENT") or DEFAULT_USER_AGENT,
            viewport_width=_env_int(env, "VIEWPORT_WIDTH", 1920, errors),
            viewport_height=_env_int(env, "VIEWPORT_HEIGHT", 1080, errors),
            locale=env.get("FBSCRAPE_LOCALE") or "en-US",
            timezone_id=env.get("FBSCRAPE_TIMEZONE") or "America/New_York",
            log_level=env.get("FBSCRAPE_LOG_LEVEL") or "INFO",
            log_file=env.get("FBSCRAPE_LOG_FILE") or None,
        )
        if errors:
            raise ConfigurationError("; ".join(errors), errors)
        return config

    @classmethod
    def from_file(cls, path: Path) -> "Config":
        """Load configuration from a JSON file."""
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def to_file(self, path: Path) -> None:
        """Save configuration to a JSON file."""
        with open(path, 'w') as f:
            json.dump(asdict(self), f, indent=2)

    @property
    def viewport(self) -> dict:
        return {"width": self.viewport_width, "height": self.viewport_height}

    def validate(self) -> List[str]:
        """Validate configuration, returns list of errors."""
        errors = []

        if self.default_strategy not in STRATEGIES:
            errors.append(
                f"default_strategy must be one of {', '.join(STRATEGIES)} "
                f"(got {self.default_strategy!r})"
            )
        if self.timeout <= 0:
            errors.append("timeout must be > 0")
        if self.max_retries < 0:
            errors.append("max_retries must be >= 0")
        if self.delay_min < 0 or self.delay_max < self.delay_min:
            errors.append("delay_min must be >= 0 and <= delay_max")
        if self.viewport_width <= 0 or self.viewport_height <= 0:
            errors.append("viewport dimensions must be > 0")
        if self.requests_per_second < 1 or self.requests_per_minute < 1:
            errors.append("rate limits must be >= 1")
        if self.min_request_interval < 0:
            errors.append("min_request_interval must be >= 0")

        return errors
