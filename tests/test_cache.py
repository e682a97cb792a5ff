import pytest

from fbscrape.cache import Cache
from fbscrape.models import ScrapeOptions

from tests.helpers import FakeClock


def make_cache(clock, **kwargs):
    kwargs.setdefault("default_ttl", 10.0)
    kwargs.setdefault("max_entries", 100)
    return Cache(cleanup_interval=None, clock=clock, **kwargs)


def test_set_then_get_returns_value():
    cache = make_cache(FakeClock())
    cache.set("k", {"posts": 3})
    assert cache.get("k") == {"posts": 3}


def test_entry_expires_without_explicit_cleanup():
    clock = FakeClock()
    cache = make_cache(clock)
    cache.set("k", "v", ttl=5.0)

    clock.advance(4.9)
    assert cache.get("k") == "v"

    clock.advance(0.1)
    assert cache.get("k") is None
    assert len(cache) == 0


def test_default_ttl_applies_when_ttl_omitted():
    clock = FakeClock()
    cache = make_cache(clock, default_ttl=2.0)
    cache.set("k", "v")
    clock.advance(2.0)
    assert not cache.has("k")


def test_cleanup_removes_expired_then_oldest_created():
    clock = FakeClock()
    cache = make_cache(clock, max_entries=10)

    cache.set("short", 1, ttl=1.0)
    for i in range(3):
        clock.advance(0.5)
        cache.set(f"k{i}", i)
        # Reading does not refresh creation order
        cache.get("k0")

    clock.advance(1.0)
    cache.max_entries = 2
    removed = cache.cleanup()

    assert removed == 2
    assert not cache.has("short")
    assert not cache.has("k0")
    assert cache.has("k1") and cache.has("k2")


def test_oversized_store_triggers_eager_cleanup():
    clock = FakeClock()
    cache = make_cache(clock, max_entries=5)

    for i in range(7):
        clock.advance(0.01)
        cache.set(f"k{i}", i)

    assert len(cache) == 5
    assert not cache.has("k0")
    assert not cache.has("k1")
    assert cache.has("k6")


def test_resetting_a_key_counts_as_new_creation():
    clock = FakeClock()
    cache = make_cache(clock, max_entries=2)

    cache.set("a", 1)
    clock.advance(1)
    cache.set("b", 2)
    clock.advance(1)
    cache.set("a", 3)
    clock.advance(1)
    cache.set("c", 4)
    cache.cleanup()

    assert cache.get("a") == 3
    assert not cache.has("b")


def test_generate_key_ignores_option_order():
    first = Cache.generate_key("https://www.facebook.com/nasa", {"limit": 20, "include_comments": False})
    second = Cache.generate_key("https://www.facebook.com/nasa", {"include_comments": False, "limit": 20})
    assert first == second
    assert first.startswith("https://www.facebook.com/nasa:")


def test_generate_key_accepts_dataclasses_and_distinguishes_options():
    a = Cache.generate_key("q", ScrapeOptions(limit=5))
    b = Cache.generate_key("q", ScrapeOptions(limit=6))
    assert a != b
    assert Cache.generate_key("q") == "q:"


def test_delete_clear_and_stats():
    cache = make_cache(FakeClock(), max_entries=10, default_ttl=30.0)
    cache.set("a", 1)
    cache.set("b", 2)

    assert cache.delete("a") is True
    assert cache.delete("a") is False
    assert cache.stats() == {"size": 1, "max_entries": 10, "default_ttl": 30.0}

    cache.clear()
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_get_or_set_computes_once():
    cache = make_cache(FakeClock())
    calls = []

    async def factory():
        calls.append(1)
        return "markup"

    assert await cache.get_or_set("k", factory) == "markup"
    assert await cache.get_or_set("k", factory) == "markup"
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_get_or_set_does_not_store_failures():
    cache = make_cache(FakeClock())

    async def failing():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await cache.get_or_set("k", failing)
    assert not cache.has("k")


def test_background_sweeper_stops():
    cache = Cache(default_ttl=1.0, cleanup_interval=0.01)
    cache.stop_cleanup()
    assert cache._cleanup_thread is None
