"""
Sliding-window rate limiter.

Three constraints apply at once: a per-second ceiling, a per-minute
ceiling and a minimum spacing between consecutive requests. Concurrent
callers queue on an asyncio.Lock, which grants slots in arrival order.
"""

import asyncio
import functools
import logging
import time
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Dict, Optional, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])

SECOND = 1.0
MINUTE = 60.0


class RateLimiter:
    """
    Token-window limiter.

    All durations are in seconds. ``clock`` and ``sleep`` are injectable so
    the window arithmetic can be tested without real waiting.
    """

    def __init__(
        self,
        requests_per_second: int = 1,
        requests_per_minute: int = 20,
        min_interval: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.requests_per_second = requests_per_second
        self.requests_per_minute = requests_per_minute
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._requests: Deque[float] = deque()
        self._last_request = None
        self._lock: Optional[asyncio.Lock] = None

    def _prune(self, now: float) -> None:
        """Drop timestamps that fell out of the one-minute window."""
        while self._requests and self._requests[0] <= now - MINUTE:
            self._requests.popleft()

    def _window_wait(self, now: float, window: float, ceiling: int) -> float:
        in_window = [t for t in self._requests if t > now - window]
        if len(in_window) < ceiling:
            return 0.0
        # The slot frees when enough old requests expire to drop below the ceiling
        blocking = in_window[len(in_window) - ceiling]
        return max(0.0, blocking + window - now)

    def get_wait_time(self) -> float:
        """Seconds until the next request is permitted."""
        now = self._clock()
        self._prune(now)

        waits = [
            self._window_wait(now, SECOND, self.requests_per_second),
            self._window_wait(now, MINUTE, self.requests_per_minute),
        ]
        if self._last_request is not None:
            waits.append(max(0.0, self._last_request + self.min_interval - now))

        return max(waits)

    def can_request(self) -> bool:
        """Non-blocking check."""
        return self.get_wait_time() == 0

    def record_request(self) -> None:
        now = self._clock()
        self._requests.append(now)
        self._last_request = now
        self._prune(now)

    async def acquire(self) -> None:
        """
        Wait for a slot and claim it.

        On return the caller may proceed; the slot is already recorded.
        """
        if self._lock is None:
            # Bound lazily so the lock belongs to the running loop
            self._lock = asyncio.Lock()

        async with self._lock:
            wait = self.get_wait_time()
            while wait > 0:
                logger.debug(f"Waiting {wait:.3f}s to respect rate limits")
                await self._sleep(wait)
                wait = self.get_wait_time()
            self.record_request()

    def status(self) -> Dict[str, Any]:
        now = self._clock()
        self._prune(now)
        return {
            "requests_in_last_second": sum(1 for t in self._requests if t > now - SECOND),
            "requests_in_last_minute": len(self._requests),
            "can_request": self.can_request(),
        }

    def reset(self) -> None:
        """Forget all request history."""
        self._requests.clear()
        self._last_request = None


def rate_limited(fn: F, limiter: RateLimiter) -> F:
    """Wrap an async callable so each call first acquires ``limiter``."""

    @functools.wraps(fn)
    async def wrapper(*args, **kwargs):
        await limiter.acquire()
        return await fn(*args, **kwargs)

    return wrapper  # type: ignore[return-value]
