"""Shared fakes and markup samples for the test suite."""

import json
from typing import Any, Dict, List, Optional, Tuple

from fbscrape.config import Config
from fbscrape.context import ScraperContext
from fbscrape.rate_limiter import RateLimiter


class FakeClock:
    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSleep:
    """Records sleeps and advances a FakeClock instead of waiting."""

    def __init__(self, clock: Optional[FakeClock] = None):
        self.clock = clock
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        if self.clock is not None:
            self.clock.advance(seconds)


class FakeResponse:
    def __init__(self, status: int = 200, body: Any = "", reason: str = "OK"):
        self.status = status
        self.reason = reason
        self._body = body if isinstance(body, str) else json.dumps(body)
        self.headers = {"Content-Type": "text/html"}

    async def text(self) -> str:
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Minimal aiohttp.ClientSession stand-in: replays canned responses."""

    def __init__(self, responses: List[FakeResponse]):
        self.responses = list(responses)
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []
        self.closed = False

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append((method, url, kwargs))
        return self.responses.pop(0)

    async def close(self) -> None:
        self.closed = True


def make_context(**overrides: Any) -> ScraperContext:
    """Context without background sweepers and with a non-blocking limiter."""
    context = ScraperContext.create(Config(**overrides), cleanup_interval=None)
    context.rate_limiter = RateLimiter(requests_per_second=1000, requests_per_minute=1000, min_interval=0)
    return context


BASIC_FEED_HTML = """
<html><head><title>NASA | Facebook</title></head><body>
<div id="m_news_feed">
<article data-ft='{"mf_story_key": "555", "top_level_post_id": "999"}'>
  <header><h3><a href="/nasa?refid=17">NASA</a></h3></header>
  <div class="story_body_container"><div><p>Launch day! Watching the rocket lift off from the pad.</p></div></div>
  <abbr data-utime="1700000000">2 hrs</abbr>
  <a href="/story.php?story_fbid=999&amp;id=1&amp;refid=17">Full Story</a>
  <a href="/ufi/reaction/profile/browser/?ft_ent_identifier=999">1,234</a>
  <a href="/story.php?story_fbid=999&amp;id=1#comments">56 Comments</a>
</article>
<article data-ft='{"top_level_post_id": "1001"}'>
  <header><h3><a href="/nasa">NASA</a></h3></header>
  <div class="story_body_container"><div><p>A second update about the mission timeline and crew.</p></div></div>
</article>
</div>
<div id="m_story_permalink_view" data-sigil="m-story">
  <div data-sigil="comment" id="2001">
    <a href="/alice?refid=52">Alice</a>
    <div data-sigil="comment-body">Great launch!</div>
    <abbr>1 hr</abbr>
    <div data-sigil="comment inline-reply" id="2002">
      <a href="/bob">Bob</a>
      <div data-sigil="comment-body">Agreed, amazing.</div>
    </div>
  </div>
  <div data-sigil="comment" id="2003">
    <a href="/carol">Carol</a>
    <div data-sigil="comment-body">When is the next one?</div>
  </div>
</div>
</body></html>
"""

FULL_FEED_HTML = """
<html><body><div role="feed">
<div data-pagelet="FeedUnit_0"><div role="article" aria-posinset="1">
  <h2><a href="https://www.facebook.com/nasa?__cft__[0]=abc&amp;__tn__=-R">NASA</a></h2>
  <div data-ad-preview="message">Our telescope captured a new image of the galaxy cluster.</div>
  <a href="https://www.facebook.com/nasa/posts/123456?__cft__[0]=x"><span>3h</span></a>
  <img src="https://scontent-iad3-1.xx.fbcdn.net/v/t39/photo.jpg">
  <img src="https://static.xx.fbcdn.net/rsrc.php/v3/emoji.png">
  <span aria-label="1.2K reactions">1.2K</span>
</div></div>
</div></body></html>
"""

PAGE_HTML = """
<html><head>
<title>NASA - Home | Facebook</title>
<meta property="og:title" content="NASA">
<meta property="og:url" content="https://www.facebook.com/NASA/">
<meta name="description" content="NASA. 12.3K followers · 25M likes · Explore the universe.">
<meta property="og:image" content="https://scontent.xx.fbcdn.net/profile.jpg">
<meta property="al:android:url" content="fb://page/54971236771">
</head><body>
<h1>NASA</h1>
<a href="/pages/category/Government-Organization/">Government Organization</a>
</body></html>
"""
