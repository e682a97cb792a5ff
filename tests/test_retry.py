import asyncio

import pytest

from fbscrape.errors import TransportError
from fbscrape.retry import (
    RetryOptions,
    compute_delay,
    create_retryable,
    fetch_with_retry,
    is_retryable,
    with_retry,
)

from tests.helpers import FakeResponse, FakeSession, FakeSleep


class InvalidInput(Exception):
    pass


def options(sleep, **kwargs):
    kwargs.setdefault("jitter", 0.0)
    return RetryOptions(sleep=sleep, **kwargs)


@pytest.mark.asyncio
async def test_timeout_errors_retried_with_increasing_backoff():
    sleep = FakeSleep()
    observed = []
    calls = []

    async def operation():
        calls.append(1)
        raise ConnectionError("connect ETIMEDOUT 157.240.1.35:443")

    opts = options(sleep, max_retries=3, base_delay=1.0, on_retry=lambda n, e, d: observed.append((n, d)))
    with pytest.raises(ConnectionError):
        await with_retry(operation, opts)

    assert len(calls) == 4
    assert sleep.calls == [1.0, 2.0, 4.0]
    assert observed == [(1, 1.0), (2, 2.0), (3, 4.0)]


@pytest.mark.asyncio
async def test_backoff_is_capped_at_max_delay():
    sleep = FakeSleep()

    async def operation():
        raise TransportError("HTTP 503: Service Unavailable", status=503)

    with pytest.raises(TransportError):
        await with_retry(operation, options(sleep, base_delay=10.0, max_delay=15.0))

    assert sleep.calls == [10.0, 15.0, 15.0]


@pytest.mark.asyncio
async def test_unlisted_errors_propagate_on_first_failure():
    sleep = FakeSleep()
    calls = []

    async def operation():
        calls.append(1)
        raise InvalidInput("InvalidInput: page_url is malformed")

    with pytest.raises(InvalidInput):
        await with_retry(operation, options(sleep))

    assert len(calls) == 1
    assert sleep.calls == []


@pytest.mark.asyncio
async def test_succeeds_after_transient_failures():
    sleep = FakeSleep()
    attempts = []

    async def operation():
        attempts.append(1)
        if len(attempts) < 3:
            raise ConnectionResetError("Connection reset by peer")
        return "ok"

    assert await with_retry(operation, options(sleep)) == "ok"
    assert len(attempts) == 3


@pytest.mark.asyncio
async def test_overrides_apply_on_top_of_options():
    sleep = FakeSleep()

    async def operation():
        raise asyncio.TimeoutError()

    with pytest.raises(asyncio.TimeoutError):
        await with_retry(operation, options(sleep), max_retries=1)

    assert sleep.calls == [1.0]


def test_jitter_stays_within_bounds():
    opts = RetryOptions(base_delay=1.0, jitter=0.25)
    for _ in range(200):
        assert 0.75 <= compute_delay(0, opts) <= 1.25


@pytest.mark.parametrize("error, expected", [
    (ConnectionError("ECONNREFUSED"), True),
    (TransportError("HTTP 429: Too Many Requests", status=429), True),
    (RuntimeError("Rate limit exceeded"), True),
    (asyncio.TimeoutError(), True),
    (ValueError("bad selector"), False),
    (InvalidInput("InvalidInput"), False),
])
def test_is_retryable(error, expected):
    assert is_retryable(error) is expected


def test_custom_retryable_markers():
    opts = RetryOptions(retryable_errors=("flaky",))
    assert is_retryable(RuntimeError("flaky upstream"), opts)
    assert not is_retryable(RuntimeError("ETIMEDOUT"), opts)


@pytest.mark.asyncio
async def test_fetch_with_retry_retries_server_errors():
    sleep = FakeSleep()
    session = FakeSession([
        FakeResponse(503, "unavailable", reason="Service Unavailable"),
        FakeResponse(200, "<html>ok</html>"),
    ])

    response = await fetch_with_retry(session, "GET", "https://example.com", options(sleep), headers={"X": "1"})

    assert response.ok
    assert response.text == "<html>ok</html>"
    assert len(session.calls) == 2
    assert session.calls[0][2] == {"headers": {"X": "1"}}
    assert sleep.calls == [1.0]


@pytest.mark.asyncio
async def test_fetch_with_retry_returns_client_errors_without_retrying():
    sleep = FakeSleep()
    session = FakeSession([FakeResponse(404, "missing", reason="Not Found")])

    response = await fetch_with_retry(session, "GET", "https://example.com", options(sleep))

    assert response.status == 404
    assert not response.ok
    assert sleep.calls == []


@pytest.mark.asyncio
async def test_fetch_with_retry_raises_after_exhaustion():
    sleep = FakeSleep()
    session = FakeSession([FakeResponse(429, "", reason="Too Many Requests") for _ in range(3)])

    with pytest.raises(TransportError) as excinfo:
        await fetch_with_retry(session, "GET", "https://example.com", options(sleep, max_retries=2))

    assert excinfo.value.status == 429
    assert len(session.calls) == 3


@pytest.mark.asyncio
async def test_create_retryable_wraps_callable():
    sleep = FakeSleep()
    attempts = []

    async def fetch(url, *, page=1):
        attempts.append((url, page))
        if len(attempts) == 1:
            raise ConnectionError("ECONNRESET")
        return f"{url}#{page}"

    wrapped = create_retryable(fetch, options(sleep))
    assert await wrapped("u", page=2) == "u#2"
    assert attempts == [("u", 2), ("u", 2)]
    assert wrapped.__name__ == "fetch"
