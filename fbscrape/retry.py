"""
Retry with exponential backoff.

Only errors whose message or type name carries a known transient marker
are retried; everything else propagates on the first failure.
"""

import asyncio
import functools
import json
import logging
import random
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, TypeVar

from .errors import TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RETRYABLE_ERRORS: Tuple[str, ...] = (
    "ECONNRESET",
    "ETIMEDOUT",
    "ECONNREFUSED",
    "ENOTFOUND",
    "EAI_AGAIN",
    # Python spellings of the same transport failures
    "connection reset",
    "connectionreset",
    "connection refused",
    "connectionrefused",
    "cannot connect to host",
    "clientconnector",
    "serverdisconnected",
    "name or service not known",
    "temporary failure in name resolution",
    "rate limit",
    "timeout",
    "429",
    "500",
    "502",
    "503",
    "504",
)

OnRetryFn = Callable[[int, BaseException, float], None]
SleepFn = Callable[[float], Awaitable[None]]


@dataclass
class RetryOptions:
    """
    Exponential backoff policy.

    - max_retries counts retries after the first attempt.
    - the delay before retry n (0-based) is
      min(base_delay * multiplier ** n, max_delay), then scaled by a
      random factor in [1 - jitter, 1 + jitter].
    """

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    multiplier: float = 2.0
    jitter: float = 0.25
    retryable_errors: Tuple[str, ...] = DEFAULT_RETRYABLE_ERRORS
    on_retry: Optional[OnRetryFn] = None
    sleep: SleepFn = field(default=asyncio.sleep, repr=False)


def compute_delay(attempt: int, options: RetryOptions) -> float:
    """Delay in seconds before retry ``attempt`` (0-based)."""
    delay = min(options.base_delay * (options.multiplier ** attempt), options.max_delay)
    if options.jitter > 0:
        delay *= random.uniform(1.0 - options.jitter, 1.0 + options.jitter)
    return max(0.0, delay)


def is_retryable(error: BaseException, options: Optional[RetryOptions] = None) -> bool:
    """True when the error message or type name carries a transient marker."""
    markers = (options or RetryOptions()).retryable_errors
    message = str(error).lower()
    name = type(error).__name__.lower()
    return any(m.lower() in message or m.lower() in name for m in markers)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    options: Optional[RetryOptions] = None,
    **overrides: Any,
) -> T:
    """
    Await ``operation()`` retrying transient failures.

    Args:
        operation: Zero-argument coroutine factory
        options: Retry policy (defaults to RetryOptions())
        **overrides: Field overrides applied on top of ``options``

    Returns:
        The operation's result

    Raises:
        The last observed error once retries are exhausted, or the first
        non-retryable error immediately.
    """
    opts = options or RetryOptions()
    if overrides:
        opts = replace(opts, **overrides)

    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as e:
            if attempt >= opts.max_retries or not is_retryable(e, opts):
                raise

            delay = compute_delay(attempt, opts)
            if opts.on_retry:
                opts.on_retry(attempt + 1, e, delay)

            logger.warning(
                f"Attempt {attempt + 1}/{opts.max_retries} failed: {e!r}; "
                f"retrying in {delay:.2f}s"
            )
            await opts.sleep(delay)
            attempt += 1


@dataclass
class FetchResponse:
    """Fully-read HTTP response (the connection is released)."""
    status: int
    reason: str
    text: str
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        return json.loads(self.text)


async def fetch_with_retry(
    session,
    method: str,
    url: str,
    retry_options: Optional[RetryOptions] = None,
    **request_kwargs: Any,
) -> FetchResponse:
    """
    Perform an HTTP request through an aiohttp ClientSession with retries.

    Status 429 and any 5xx are raised as TransportError inside the retried
    operation, so they are retried like transport failures.
    """

    async def attempt() -> FetchResponse:
        async with session.request(method, url, **request_kwargs) as response:
            text = await response.text()
            if response.status >= 500 or response.status == 429:
                raise TransportError(
                    f"HTTP {response.status}: {response.reason}",
                    status=response.status,
                )
            return FetchResponse(
                status=response.status,
                reason=response.reason or "",
                text=text,
                headers=dict(response.headers),
            )

    return await with_retry(attempt, retry_options)


def create_retryable(
    fn: Callable[..., Awaitable[T]],
    options: Optional[RetryOptions] = None,
) -> Callable[..., Awaitable[T]]:
    """Wrap an async callable so every call goes through with_retry."""

    @functools.wraps(fn)
    async def wrapper(*args, **kwargs):
        return await with_retry(lambda: fn(*args, **kwargs), options)

    return wrapper
