"""
In-memory TTL cache.

Entries carry an absolute expiry and are evicted lazily on read, eagerly
when the store grows past 120% of its cap, and periodically by a daemon
thread. Capacity eviction removes the oldest-created entries first
(creation order, not access order).
"""

import json
import logging
import threading
import time
from dataclasses import dataclass, asdict, is_dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING = object()


@dataclass
class CacheEntry(Generic[T]):
    """A cached value with creation and absolute expiry times."""
    value: T
    created_at: float
    expires_at: float


class Cache(Generic[T]):
    """
    Thread-safe TTL + capacity cache.

    Usage:
        cache = Cache(default_ttl=600, max_entries=500)
        key = Cache.generate_key(url, {"limit": 20})
        result = await cache.get_or_set(key, fetch)

    Best-effort memoization only: concurrent misses on the same key may
    both run their factory.
    """

    def __init__(
        self,
        default_ttl: float = 300.0,
        max_entries: int = 1000,
        cleanup_interval: Optional[float] = 60.0,
        clock: Callable[[], float] = time.monotonic,
        name: str = "cache",
    ):
        self.default_ttl = default_ttl
        self.max_entries = max_entries
        self.cleanup_interval = cleanup_interval
        self.name = name
        self._clock = clock
        self._entries: Dict[str, CacheEntry[T]] = {}
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._cleanup_thread: Optional[threading.Thread] = None

        if cleanup_interval:
            self._start_cleanup()

    def _start_cleanup(self) -> None:
        """Start the periodic sweeper; daemon so it never blocks exit."""
        self._cleanup_thread = threading.Thread(
            target=self._cleanup_loop,
            name=f"{self.name}-cleanup",
            daemon=True,
        )
        self._cleanup_thread.start()

    def _cleanup_loop(self) -> None:
        while not self._stop_event.wait(self.cleanup_interval):
            removed = self.cleanup()
            if removed:
                logger.debug(f"[{self.name}] Periodic cleanup removed {removed} entries")

    def stop_cleanup(self) -> None:
        """Stop the periodic sweeper."""
        self._stop_event.set()
        if self._cleanup_thread and self._cleanup_thread is not threading.current_thread():
            self._cleanup_thread.join(timeout=1.0)
        self._cleanup_thread = None

    @staticmethod
    def generate_key(target: str, options: Any = None) -> str:
        """
        Build a stable key from a URL/query and an options object.

        Options are serialized with sorted keys so equivalent requests with
        differently-ordered fields share one entry.
        """
        if options is None:
            return f"{target}:"
        if is_dataclass(options):
            options = asdict(options)
        serialized = json.dumps(options, sort_keys=True, separators=(",", ":"), default=str)
        return f"{target}:{serialized}"

    def cleanup(self) -> int:
        """Remove expired entries, then the oldest-created ones over the cap."""
        now = self._clock()
        removed = 0

        with self._lock:
            for key in [k for k, e in self._entries.items() if e.expires_at <= now]:
                del self._entries[key]
                removed += 1

            overflow = len(self._entries) - self.max_entries
            if overflow > 0:
                # sorted() is stable: ties keep insertion order
                oldest = sorted(self._entries.items(), key=lambda item: item[1].created_at)
                for key, _ in oldest[:overflow]:
                    del self._entries[key]
                    removed += 1

        return removed

    def get(self, key: str, default: Any = None) -> Optional[T]:
        """Return the cached value, or ``default`` if missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            if entry.expires_at <= self._clock():
                del self._entries[key]
                return default
            return entry.value

    def set(self, key: str, value: T, ttl: Optional[float] = None) -> None:
        """Store ``value`` until now + ``ttl`` (or the default TTL)."""
        now = self._clock()
        ttl = ttl if ttl else self.default_ttl

        with self._lock:
            # Re-setting a key counts as a new creation
            self._entries.pop(key, None)
            self._entries[key] = CacheEntry(value=value, created_at=now, expires_at=now + ttl)
            oversized = len(self._entries) > self.max_entries * 1.2

        if oversized:
            self.cleanup()

    def has(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> Dict[str, Any]:
        """Size after a cleanup pass, plus the configured policy."""
        self.cleanup()
        return {
            "size": len(self),
            "max_entries": self.max_entries,
            "default_ttl": self.default_ttl,
        }

    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Awaitable[T]],
        ttl: Optional[float] = None,
    ) -> T:
        """Cache-aside: return the cached value or compute, store and return it."""
        cached = self.get(key, _MISSING)
        if cached is not _MISSING:
            logger.debug(f"[{self.name}] HIT: {key[:50]}")
            return cached

        logger.debug(f"[{self.name}] MISS: {key[:50]}")
        value = await factory()
        self.set(key, value, ttl)
        return value
