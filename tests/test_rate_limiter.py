import asyncio

import pytest

from fbscrape.rate_limiter import RateLimiter, rate_limited

from tests.helpers import FakeClock, FakeSleep


def make_limiter(**kwargs):
    clock = FakeClock()
    sleep = FakeSleep(clock)
    limiter = RateLimiter(clock=clock, sleep=sleep, **kwargs)
    return limiter, clock, sleep


@pytest.mark.asyncio
async def test_no_one_second_window_exceeds_ceiling():
    limiter, clock, sleep = make_limiter(requests_per_second=2, requests_per_minute=100, min_interval=0)

    stamps = []
    for _ in range(7):
        await limiter.acquire()
        stamps.append(clock())

    assert sum(sleep.calls) > 0
    for t in stamps:
        in_window = [s for s in stamps if t - 1.0 < s <= t]
        assert len(in_window) <= 2


@pytest.mark.asyncio
async def test_concurrent_callers_are_served_in_arrival_order():
    limiter, clock, _ = make_limiter(requests_per_second=2, requests_per_minute=100, min_interval=0)
    served = []

    async def worker(index):
        await limiter.acquire()
        served.append((index, clock()))

    await asyncio.gather(*(worker(i) for i in range(6)))

    assert [index for index, _ in served] == list(range(6))
    stamps = [t for _, t in served]
    assert stamps == [pytest.approx(t) for t in (0, 0, 1, 1, 2, 2)]
    for t in stamps:
        assert len([s for s in stamps if t - 1.0 < s <= t]) <= 2


@pytest.mark.asyncio
async def test_minimum_spacing_between_requests():
    limiter, clock, sleep = make_limiter(requests_per_second=10, requests_per_minute=100, min_interval=0.5)

    await limiter.acquire()
    assert limiter.get_wait_time() == pytest.approx(0.5)
    assert not limiter.can_request()

    await limiter.acquire()
    assert clock() == pytest.approx(0.5)
    assert sleep.calls == [pytest.approx(0.5)]


@pytest.mark.asyncio
async def test_per_minute_ceiling():
    limiter, clock, _ = make_limiter(requests_per_second=100, requests_per_minute=3, min_interval=0)

    for _ in range(4):
        await limiter.acquire()

    assert clock() == pytest.approx(60.0)
    assert limiter.status()["requests_in_last_minute"] == 1


def test_fresh_limiter_permits_immediately():
    limiter, _, _ = make_limiter()
    assert limiter.get_wait_time() == 0
    assert limiter.can_request()


def test_status_and_reset():
    limiter, clock, _ = make_limiter(requests_per_second=1, requests_per_minute=20, min_interval=0.5)
    limiter.record_request()

    status = limiter.status()
    assert status["requests_in_last_second"] == 1
    assert status["requests_in_last_minute"] == 1
    assert status["can_request"] is False

    limiter.reset()
    assert limiter.can_request()
    assert limiter.status()["requests_in_last_minute"] == 0


@pytest.mark.asyncio
async def test_rate_limited_decorator_acquires_before_each_call():
    limiter, clock, _ = make_limiter(requests_per_second=1, requests_per_minute=100, min_interval=0)
    seen = []

    async def fetch(url):
        seen.append((url, clock()))
        return url

    limited = rate_limited(fetch, limiter)
    assert await limited("a") == "a"
    assert await limited("b") == "b"

    assert seen == [("a", 0.0), ("b", pytest.approx(1.0))]
