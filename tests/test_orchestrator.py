import pytest

from fbscrape.backends import PlaywrightMCPBackend, error_result, search_error_result
from fbscrape.models import (
    Post,
    ResultKind,
    ScrapeOptions,
    ScrapeResult,
    SearchOptions,
    SearchPayload,
    SearchResult,
    SearchType,
)
from fbscrape.orchestrator import Orchestrator

from tests.helpers import make_context

ALL_BACKENDS = ("brightdata", "firecrawl", "playwright-mcp", "standalone")


class FakeBackend:
    """Scripted backend: outcome is 'success', 'fail' or 'raise'."""

    def __init__(self, name, outcome="success"):
        self.name = name
        self.outcome = outcome
        self.calls = []
        self.cleaned_up = False

    @property
    def capabilities(self):
        return None

    def is_available(self):
        return True

    async def scrape_url(self, url, options=None):
        self.calls.append(("scrape", url, options))
        if self.outcome == "raise":
            raise RuntimeError(f"{self.name} exploded")
        if self.outcome == "fail":
            return error_result(self.name, f"{self.name} failed", url)
        return ScrapeResult(
            kind=ResultKind.SUCCESS,
            adapter_used=self.name,
            data=[Post(id="1", content=f"from {self.name}")],
        )

    async def search(self, query, options=None):
        self.calls.append(("search", query, options))
        if self.outcome == "raise":
            raise RuntimeError(f"{self.name} exploded")
        if self.outcome == "fail":
            return search_error_result(self.name, f"{self.name} failed", query)
        return SearchResult(
            kind=ResultKind.SUCCESS,
            adapter_used=self.name,
            data=SearchPayload(type=SearchType.POST),
        )

    async def cleanup(self):
        self.cleaned_up = True


def build(outcomes, **config):
    """Orchestrator over fake backends; every backend is detected as available."""
    config.setdefault("brightdata_token", "tok")
    config.setdefault("firecrawl_api_key", "key")
    config.setdefault("playwright_mcp_enabled", True)
    context = make_context(**config)

    fakes = {name: FakeBackend(name, outcomes.get(name, "success")) for name in ALL_BACKENDS}
    factories = {name: (lambda ctx, fake=fake: fake) for name, fake in fakes.items()}
    return Orchestrator(context, factories), fakes


@pytest.mark.asyncio
async def test_highest_priority_success_short_circuits():
    orchestrator, fakes = build({})

    result = await orchestrator.scrape("https://www.facebook.com/nasa")

    assert result.success
    assert result.adapter_used == "brightdata"
    assert fakes["firecrawl"].calls == []
    assert fakes["standalone"].calls == []


@pytest.mark.asyncio
async def test_failures_and_exceptions_both_fall_back():
    orchestrator, fakes = build({"brightdata": "raise", "firecrawl": "fail", "playwright-mcp": "fail"})

    result = await orchestrator.scrape_page("https://www.facebook.com/nasa")

    assert result.success
    assert result.adapter_used == "standalone"
    assert all(len(fakes[name].calls) == 1 for name in ALL_BACKENDS)


@pytest.mark.asyncio
async def test_exhaustion_is_attributed_to_last_resort():
    orchestrator, _ = build({name: "fail" for name in ALL_BACKENDS})

    result = await orchestrator.scrape_post("https://www.facebook.com/nasa/posts/1")

    assert result.kind is ResultKind.FAILURE
    assert result.adapter_used == "standalone"
    assert result.error == "All adapters failed"
    assert result.metadata.target == "https://www.facebook.com/nasa/posts/1"


@pytest.mark.asyncio
async def test_search_exhaustion_message():
    orchestrator, _ = build({name: "raise" for name in ALL_BACKENDS})

    result = await orchestrator.search("nasa")

    assert not result.success
    assert result.adapter_used == "standalone"
    assert result.error == "All adapters failed for search"


@pytest.mark.asyncio
async def test_search_falls_back_like_scrape():
    orchestrator, fakes = build({"brightdata": "fail"})

    result = await orchestrator.search("nasa", SearchOptions(limit=3))

    assert result.success
    assert result.adapter_used == "firecrawl"
    assert fakes["firecrawl"].calls[0][2].limit == 3


@pytest.mark.asyncio
async def test_forced_strategy_never_falls_back():
    orchestrator, fakes = build({"firecrawl": "fail"})

    result = await orchestrator.scrape("https://www.facebook.com/nasa", ScrapeOptions(strategy="firecrawl"))

    assert not result.success
    assert result.adapter_used == "firecrawl"
    assert fakes["brightdata"].calls == []
    assert fakes["standalone"].calls == []


@pytest.mark.asyncio
async def test_forced_strategy_exception_becomes_failure():
    orchestrator, fakes = build({"standalone": "raise"})

    result = await orchestrator.scrape("https://www.facebook.com/nasa", ScrapeOptions(strategy="standalone"))

    assert result.kind is ResultKind.FAILURE
    assert result.adapter_used == "standalone"
    assert "exploded" in result.error
    assert fakes["brightdata"].calls == []


@pytest.mark.asyncio
async def test_forced_unavailable_backend_fails_without_fallback():
    orchestrator, fakes = build({}, brightdata_token=None)

    result = await orchestrator.scrape("https://www.facebook.com/nasa", ScrapeOptions(strategy="brightdata"))

    assert not result.success
    assert result.adapter_used == "brightdata"
    assert result.error == "Backend 'brightdata' is not available"
    assert all(fake.calls == [] for fake in fakes.values())


@pytest.mark.asyncio
async def test_default_strategy_from_config_forces_backend():
    orchestrator, fakes = build({}, default_strategy="firecrawl")

    result = await orchestrator.scrape("https://www.facebook.com/nasa")

    assert result.adapter_used == "firecrawl"
    assert fakes["brightdata"].calls == []


@pytest.mark.asyncio
async def test_explicit_auto_overrides_nothing():
    orchestrator, _ = build({}, default_strategy="auto")

    result = await orchestrator.scrape("https://www.facebook.com/nasa", ScrapeOptions(strategy="auto"))
    assert result.adapter_used == "brightdata"


@pytest.mark.asyncio
async def test_scrape_comments_forces_include_comments():
    orchestrator, fakes = build({})

    await orchestrator.scrape_comments("https://www.facebook.com/nasa/posts/1", ScrapeOptions(limit=5))

    options = fakes["brightdata"].calls[0][2]
    assert options.include_comments is True
    assert options.limit == 5


@pytest.mark.asyncio
async def test_only_available_backends_are_instantiated():
    created = []

    def factory(name):
        def make(ctx):
            created.append(name)
            return FakeBackend(name)
        return make

    context = make_context(firecrawl_api_key="key")
    orchestrator = Orchestrator(context, {name: factory(name) for name in ALL_BACKENDS})

    assert orchestrator.backend_order == ["firecrawl", "standalone"]
    orchestrator.initialize()
    assert created == ["firecrawl", "standalone"]
    assert orchestrator.get_backend("brightdata") is None
    assert [b.name for b in orchestrator.get_available_backends()] == ["firecrawl", "standalone"]


@pytest.mark.asyncio
async def test_cleanup_calls_every_teardown_hook():
    orchestrator, fakes = build({})
    orchestrator.initialize()

    await orchestrator.cleanup()

    assert all(fake.cleaned_up for fake in fakes.values())


@pytest.mark.asyncio
async def test_forced_delegated_backend_returns_instructions():
    context = make_context(playwright_mcp_enabled=True)
    orchestrator = Orchestrator(context, {
        "playwright-mcp": PlaywrightMCPBackend,
        "standalone": lambda ctx: FakeBackend("standalone"),
    })

    result = await orchestrator.scrape(
        "https://www.facebook.com/nasa",
        ScrapeOptions(strategy="playwright-mcp"),
    )

    assert result.kind is ResultKind.DELEGATION_REQUIRED
    assert not result.success
    assert result.instructions.target_url == "https://mbasic.facebook.com/nasa"


@pytest.mark.asyncio
async def test_delegation_counts_as_failure_in_auto_mode():
    context = make_context(playwright_mcp_enabled=True)
    standalone = FakeBackend("standalone")
    orchestrator = Orchestrator(context, {
        "playwright-mcp": PlaywrightMCPBackend,
        "standalone": lambda ctx: standalone,
    })

    result = await orchestrator.scrape("https://www.facebook.com/nasa")

    assert result.success
    assert result.adapter_used == "standalone"
    assert len(standalone.calls) == 1
