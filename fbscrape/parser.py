"""
Facebook HTML Parser

Turns raw Facebook markup into Post, Page and Comment records.

Two dialects are live at any time: the lightweight mbasic/m. rendering
and the full interactive site. Both churn constantly and use obfuscated
class names, so extraction runs off an ordered selector table
(dialect -> field -> candidate selectors):

- containers: the first selector that produces at least one usable post
  wins; the other dialect's selectors are tried next
- singletons (author, timestamp, link): first non-empty match wins
- body text: longest candidate wins, since short matches are usually
  UI labels
- when no structural selector matches, a blind text pass still returns
  plausible content blocks with the author left unresolved

Per-element failures are logged and skipped; they never abort a parse.
"""

import json
import logging
import re
import time
import uuid
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple, TypeVar

from bs4 import BeautifulSoup, Tag

from .errors import ParseError
from .models import Comment, Page, Post
from .urls import absolutize, strip_tracking_params

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_POSTS = 50
MAX_CONTENT_LENGTH = 2000
MAX_CONTAINER_TEXT = 1000
MAX_COMMENT_LENGTH = 1000
MIN_POST_LENGTH = 10

# Blind text pass window
FALLBACK_MIN_LENGTH = 50
FALLBACK_MAX_LENGTH = 5000
FALLBACK_CONTENT_LENGTH = 500
FALLBACK_TAGS = ["p", "span", "div"]

MULTIPLIERS = {"K": 1_000, "M": 1_000_000, "B": 1_000_000_000}


class Dialect(Enum):
    """Structural rendering of the markup."""
    BASIC = "basic"  # mbasic.facebook.com / m.facebook.com
    FULL = "full"    # www.facebook.com

    @property
    def other(self) -> "Dialect":
        return Dialect.FULL if self is Dialect.BASIC else Dialect.BASIC


BASIC_MARKERS = (
    "mbasic.facebook.com",
    "m.facebook.com",
    "data-ft=",
    "story_body_container",
    "m_story_permalink_view",
    "data-sigil=",
)

FULL_MARKERS = (
    "data-pagelet",
    'data-testid="post_message"',
    "userContentWrapper",
    'role="article"',
    "data-ad-preview",
    'role="feed"',
)

# Ordered candidate selectors; earlier entries are more specific.
SELECTORS: Dict[Dialect, Dict[str, Tuple[str, ...]]] = {
    Dialect.BASIC: {
        "post": (
            "article[data-ft]",
            "div[data-ft]",
            "article",
            "div.story_body_container",
            "div#m_story_permalink_view",
        ),
        "author": (
            "h3 a",
            "header a",
            "h3 strong a",
            "a strong",
            "strong a",
            'a[href*="/profile.php"]',
            'a[href*="/pages/"]',
        ),
        "content": (
            "div.story_body_container > div",
            'div[data-ft*="top_level_post_id"] p',
            "div[data-ft] > div > span",
            "p",
            "span",
        ),
        "timestamp": (
            "abbr[data-utime]",
            "abbr",
            "time",
            "span[data-utime]",
        ),
        "link": (
            'a[href*="/story.php"]',
            'a[href*="/posts/"]',
            'a[href*="/permalink"]',
            'a[href*="/photos/"]',
        ),
        "reactions": (
            'a[href*="/ufi/reaction"]',
            'a[href*="reaction/profile"]',
            'span[id*="like"]',
            'a[aria-label*="reaction" i]',
        ),
        "comments": (
            'a[href*="comment"]',
            'span[data-sigil="comments-token"]',
        ),
        "shares": (
            'a[href*="/shares/"]',
            'span[data-sigil="share-token"]',
        ),
        "comment": (
            'div[data-sigil~="comment"]',
            "div[data-commentid]",
            'div[id*="comment"]',
        ),
        "comment_body": (
            'div[data-sigil="comment-body"]',
            'div[data-commentid] > div > div:nth-of-type(2)',
        ),
    },
    Dialect.FULL: {
        "post": (
            '[data-pagelet*="FeedUnit"]',
            'div[role="article"][aria-posinset]',
            'div[role="article"]',
            'div[data-testid="post_message"]',
            "div.userContentWrapper",
        ),
        "author": (
            "h2 a",
            "h3 a",
            "h4 a",
            'a[role="link"] strong',
            "strong a",
            "a strong",
            'a[href*="/profile.php"]',
        ),
        "content": (
            'div[data-testid="post_message"]',
            'div[data-ad-preview="message"]',
            'div[data-ad-comet-preview="message"]',
            'div[dir="auto"]',
            "p",
            "span",
        ),
        "timestamp": (
            "abbr[data-utime]",
            "time",
            'a[href*="/posts/"] span',
            "abbr",
        ),
        "link": (
            'a[href*="/posts/"]',
            'a[href*="/permalink"]',
            'a[href*="/story.php"]',
            'a[href*="/photos/"]',
            'a[href*="/videos/"]',
        ),
        "reactions": (
            'span[aria-label*="reaction" i]',
            'div[aria-label*="reaction" i]',
            "span.UFILikeSentenceText",
            'a[href*="reaction"]',
        ),
        "comments": (
            'span[aria-label*="comment" i]',
            'a[href*="comment"]',
            'div[role="button"] span',
        ),
        "shares": (
            'span[aria-label*="share" i]',
            'a[href*="/shares/"]',
        ),
        "comment": (
            'div[data-testid="comment"]',
            'div[data-testid^="UFI2Comment/root"]',
            "div.UFIComment",
            'div[role="article"][aria-label^="Comment"], div[role="article"][aria-label^="Reply"]',
            'div[id*="comment"]',
        ),
        "comment_body": (
            'div[data-testid="comment-body"]',
            "span.UFICommentBody",
            'div[dir="auto"]',
        ),
    },
}

# Per-post metadata attributes (JSON) and the keys that hold a post id
ID_ATTRIBUTES = ("data-ft", "data-store")
ID_KEYS = ("mf_story_key", "top_level_post_id", "story_fbid", "tl_objid", "post_id")

TIMESTAMP_ATTRIBUTES = ("title", "data-utime", "datetime")

LINK_ID_PATTERN = re.compile(r"(?:/posts/|/permalink/|story_fbid=)([\w.-]+)")

CDN_PATTERN = re.compile(r"(?:fbcdn\.net|scontent[\w.-]*\.)", re.IGNORECASE)
NON_CONTENT_IMAGE = re.compile(
    r"emoji|rsrc\.php|static\.xx\.fbcdn|/images/|safe_image\.php",
    re.IGNORECASE,
)
BACKGROUND_IMAGE = re.compile(r"background-image:\s*url\(['\"]?([^'\")]+)['\"]?\)")

COUNT_PATTERN = re.compile(r"(\d[\d,.]*\s*[KMB]?)(?![a-z])", re.IGNORECASE)
ABBREVIATED_NUMBER = re.compile(r"^\s*(\d[\d,.]*)\s*([KMB])?", re.IGNORECASE)
FOLLOWERS_PATTERN = re.compile(
    r"(\d[\d,.]*\s*[KMB]?)\s*(?:people\s+)?(?:followers?|follow\s+this)\b",
    re.IGNORECASE,
)
LIKES_PATTERN = re.compile(
    r"(\d[\d,.]*\s*[KMB]?)\s*(?:people\s+)?(?:likes?|like\s+this)\b",
    re.IGNORECASE,
)

UI_PHRASES = re.compile(
    r"\b(?:log\s?in|sign\s?up|create new account|forgot (?:your )?password|"
    r"not now|join facebook|see more of .+ on facebook)\b",
    re.IGNORECASE,
)
COMMENT_UI_TOKEN = re.compile(
    r"^(?:like|reply|share|more|edit|hide|·|\d+\s*[smhdwy]|\d+\s*(?:min|hr|hrs)s?)$",
    re.IGNORECASE,
)
SITE_SUFFIX = re.compile(r"\s*[|\-–—]\s*Facebook\s*$", re.IGNORECASE)
NOTIFICATION_PREFIX = re.compile(r"^\(\d+\)\s*")
APP_LINK_ID = re.compile(r"fb://(?:page|profile)/(?:\?id=)?(\d+)")


def classify_dialect(markup: str) -> Dialect:
    """Sniff which rendering produced ``markup``; ties go to BASIC."""
    basic_score = sum(1 for marker in BASIC_MARKERS if marker in markup)
    full_score = sum(1 for marker in FULL_MARKERS if marker in markup)
    return Dialect.FULL if full_score > basic_score else Dialect.BASIC


def parse_abbreviated_number(text: str) -> Optional[int]:
    """
    Parse human-abbreviated counts.

    "12.3K" -> 12300, "1M" -> 1000000, "12,345" -> 12345.
    """
    if not text:
        return None
    match = ABBREVIATED_NUMBER.match(text)
    if not match:
        return None

    number, suffix = match.group(1), match.group(2)
    if suffix:
        if "," in number and "." not in number:
            number = number.replace(",", ".")  # "1,2K"
        number = number.replace(",", "")
        try:
            return int(round(float(number) * MULTIPLIERS[suffix.upper()]))
        except ValueError:
            return None

    digits = re.sub(r"[^\d]", "", number)
    return int(digits) if digits else None


def _clean(text: Optional[str]) -> str:
    return " ".join(text.split()) if text else ""


def _text(tag: Tag) -> str:
    return _clean(tag.get_text(" ", strip=True))


def _safe(fn: Callable[..., T], *args) -> Optional[T]:
    """Run one page-field extractor, degrading failures to None."""
    try:
        return fn(*args)
    except Exception as e:
        logger.debug(f"Extractor {fn.__name__} failed: {e}")
        return None


def _outermost(tags: Iterable[Tag]) -> List[Tag]:
    """Drop matches nested inside another match of the same set."""
    tags = list(tags)
    ids = {id(tag) for tag in tags}
    return [tag for tag in tags if not any(id(p) in ids for p in tag.parents)]


def _synthetic_id(prefix: str) -> str:
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class _Deduplicator:
    """
    One rule for both passes: a post is a duplicate when its content was
    already kept, or its id is real (not synthetic) and was already kept.
    """

    def __init__(self):
        self._contents: Set[str] = set()
        self._ids: Set[str] = set()

    def accept(self, post: Post, synthetic_id: bool) -> bool:
        if post.content in self._contents:
            return False
        if not synthetic_id and post.id in self._ids:
            return False
        self._contents.add(post.content)
        if not synthetic_id:
            self._ids.add(post.id)
        return True


class FacebookParser:
    """
    Parses Facebook HTML into structured records.

    Usage:
        parser = FacebookParser()
        posts = parser.parse_posts(html)
        page = parser.parse_page(html)
        comments = parser.parse_comments(html)
    """

    def __init__(self, selectors: Optional[Dict[Dialect, Dict[str, Tuple[str, ...]]]] = None):
        self.selectors = selectors or SELECTORS

    def _load(self, markup: str) -> BeautifulSoup:
        if not isinstance(markup, str) or not markup.strip():
            raise ParseError("Empty markup")
        return BeautifulSoup(markup, "html.parser")

    # ------------------------------------------------------------------
    # Posts
    # ------------------------------------------------------------------

    def parse_posts(self, markup: str) -> List[Post]:
        """
        Parse posts from Facebook HTML.

        Returns at most MAX_POSTS posts. Never raises: unusable markup
        yields an empty list.
        """
        try:
            soup = self._load(markup)
        except ParseError:
            return []

        dialect = classify_dialect(markup)
        posts: List[Post] = []

        for candidate in (dialect, dialect.other):
            posts = self._structural_pass(soup, candidate)
            if posts:
                logger.debug(f"Structural pass ({candidate.value}) found {len(posts)} posts")
                break

        if not posts:
            posts = self._fallback_pass(soup)
            logger.debug(f"Fallback text pass found {len(posts)} posts")

        return posts[:MAX_POSTS]

    def _structural_pass(self, soup: BeautifulSoup, dialect: Dialect) -> List[Post]:
        for selector in self.selectors[dialect]["post"]:
            containers = _outermost(soup.select(selector))
            if not containers:
                continue

            dedup = _Deduplicator()
            posts: List[Post] = []

            for element in containers:
                try:
                    post, synthetic = self._parse_post_element(element, dialect)
                except Exception as e:
                    logger.debug(f"Skipping malformed post container ({selector}): {e}")
                    continue

                if len(post.content) < MIN_POST_LENGTH:
                    continue
                if dedup.accept(post, synthetic):
                    posts.append(post)

            if posts:
                return posts

        return []

    def _parse_post_element(self, element: Tag, dialect: Dialect) -> Tuple[Post, bool]:
        table = self.selectors[dialect]

        content = self._extract_content(element, table["content"])
        if not content:
            content = _text(element)[:MAX_CONTAINER_TEXT]
        if not content:
            raise ParseError("Container has no text")

        author, author_url = self._extract_author(element, table["author"])
        post_url = self._extract_post_url(element, table["link"])

        post_id = self._extract_id(element)
        synthetic = False
        if post_id is None and post_url:
            match = LINK_ID_PATTERN.search(post_url)
            post_id = match.group(1) if match else None
        if post_id is None:
            post_id = _synthetic_id("post")
            synthetic = True

        post = Post(
            id=post_id,
            author=author or "Unknown",
            author_url=author_url,
            content=content[:MAX_CONTENT_LENGTH],
            timestamp=self._extract_timestamp(element, table["timestamp"]),
            reactions=self._extract_count(element, table["reactions"]),
            comments_count=self._extract_count(element, table["comments"]),
            shares_count=self._extract_count(element, table["shares"]),
            images=self._extract_images(element),
            post_url=post_url,
        )
        return post, synthetic

    def _extract_id(self, element: Tag) -> Optional[str]:
        for attr in ID_ATTRIBUTES:
            raw = element.get(attr)
            if not raw:
                continue
            try:
                data = json.loads(raw)
            except ValueError:
                continue
            if not isinstance(data, dict):
                continue
            for key in ID_KEYS:
                value = data.get(key)
                if value not in (None, ""):
                    return str(value)
        return None

    def _extract_author(
        self, element: Tag, selectors: Tuple[str, ...]
    ) -> Tuple[Optional[str], Optional[str]]:
        for selector in selectors:
            for match in element.select(selector):
                name = _text(match)
                if not name:
                    continue
                anchor = match if match.name == "a" else (match.find_parent("a") or match.find("a"))
                href = absolutize(anchor.get("href")) if anchor else None
                return name, strip_tracking_params(href) if href else None
        return None, None

    def _extract_content(self, element: Tag, selectors: Tuple[str, ...]) -> str:
        best = ""
        for selector in selectors:
            for match in element.select(selector):
                text = _text(match)
                if text:
                    if len(text) > len(best):
                        best = text
                    break
        return best

    def _extract_timestamp(self, element: Tag, selectors: Tuple[str, ...]) -> Optional[str]:
        for selector in selectors:
            for match in element.select(selector):
                for attr in TIMESTAMP_ATTRIBUTES:
                    value = match.get(attr)
                    if value:
                        return str(value).strip()
                text = _text(match)
                if text:
                    return text
        return None

    def _extract_post_url(self, element: Tag, selectors: Tuple[str, ...]) -> str:
        for selector in selectors:
            for match in element.select(selector):
                href = absolutize(match.get("href"))
                if href:
                    return strip_tracking_params(href)
        return ""

    def _extract_count(self, element: Tag, selectors: Tuple[str, ...]) -> Optional[int]:
        for selector in selectors:
            for match in element.select(selector):
                sources = [_text(match), match.get("aria-label") or ""]
                for source in sources:
                    found = COUNT_PATTERN.search(source)
                    if found:
                        value = parse_abbreviated_number(found.group(1))
                        if value is not None:
                            return value
        return None

    def _extract_images(self, element: Tag) -> List[str]:
        images: List[str] = []

        def add(url: Optional[str]) -> None:
            if url and CDN_PATTERN.search(url) and not NON_CONTENT_IMAGE.search(url):
                if url not in images:
                    images.append(url)

        for img in element.find_all("img"):
            add(img.get("src"))
            add(img.get("data-src"))

        # Photo grids on mbasic render as styled divs
        for styled in element.select('[style*="background-image"]'):
            for url in BACKGROUND_IMAGE.findall(styled.get("style", "")):
                add(url)

        return images

    def _fallback_pass(self, soup: BeautifulSoup) -> List[Post]:
        """
        Blind text pass: plausible-length blocks without UI phrases.

        Walks innermost-first so a wrapper is skipped once a block inside
        it was kept.
        """
        elements = soup.find_all(FALLBACK_TAGS)
        kept: List[Tuple[int, str]] = []
        seen: Set[str] = set()

        for index in range(len(elements) - 1, -1, -1):
            text = _text(elements[index])
            if not FALLBACK_MIN_LENGTH <= len(text) <= FALLBACK_MAX_LENGTH:
                continue
            if UI_PHRASES.search(text):
                continue
            if text in seen or any(inner in text for _, inner in kept):
                continue
            seen.add(text)
            kept.append((index, text))

        kept.sort()
        return [
            Post(
                id=f"post_{index}",
                author="Unknown",
                content=text[:FALLBACK_CONTENT_LENGTH],
                post_url="",
            )
            for index, text in kept
        ]

    # ------------------------------------------------------------------
    # Page
    # ------------------------------------------------------------------

    def parse_page(self, markup: str) -> Optional[Page]:
        """
        Parse page info from Facebook HTML.

        Each field degrades to absent on failure; None only when the
        markup cannot be loaded at all.
        """
        try:
            soup = self._load(markup)
        except Exception as e:
            logger.warning(f"Could not load page markup: {e}")
            return None

        url = _safe(self._page_url, soup) or ""
        description = _safe(self._page_description, soup)
        stats_text = " ".join(filter(None, [description, _safe(_text, soup.body or soup)]))

        return Page(
            id=_safe(self._page_id, soup, url) or "",
            name=_safe(self._page_name, soup) or "",
            url=url,
            username=_safe(self._page_username, url),
            followers=_safe(self._match_count, FOLLOWERS_PATTERN, stats_text),
            likes=_safe(self._match_count, LIKES_PATTERN, stats_text),
            category=_safe(self._page_category, soup),
            description=description,
            profile_image=_safe(self._page_image, soup, (
                'img[alt*="profile picture" i]',
                'img[alt*="profile" i]',
                "img.profilePicThumb",
                'img[data-imgperflogname="profileCoverPhoto"] ~ img',
            ), 'meta[property="og:image"]'),
            cover_image=_safe(self._page_image, soup, (
                "img.coverPhoto",
                "img.coverPhotoImg",
                'img[data-imgperflogname="profileCoverPhoto"]',
                'img[alt*="cover photo" i]',
            ), None),
            verified=bool(_safe(self._page_verified, soup)),
        )

    def _page_name(self, soup: BeautifulSoup) -> Optional[str]:
        candidates = []
        heading = soup.select_one("h1")
        if heading:
            candidates.append(_text(heading))
        og_title = soup.select_one('meta[property="og:title"]')
        if og_title:
            candidates.append(_clean(og_title.get("content")))
        if soup.title:
            candidates.append(_text(soup.title))

        for candidate in candidates:
            name = SITE_SUFFIX.sub("", NOTIFICATION_PREFIX.sub("", candidate)).strip()
            if name and name.lower() != "facebook":
                return name
        return None

    def _page_description(self, soup: BeautifulSoup) -> Optional[str]:
        for selector in ('meta[name="description"]', 'meta[property="og:description"]'):
            tag = soup.select_one(selector)
            if tag and tag.get("content"):
                return _clean(tag["content"])
        return None

    def _page_url(self, soup: BeautifulSoup) -> Optional[str]:
        tag = soup.select_one('meta[property="og:url"]')
        if tag and tag.get("content"):
            return tag["content"].strip()
        link = soup.select_one('link[rel="canonical"]')
        if link and link.get("href"):
            return absolutize(link["href"])
        return None

    def _page_id(self, soup: BeautifulSoup, url: str) -> Optional[str]:
        for selector in ('meta[property="al:android:url"]', 'meta[property="al:ios:url"]'):
            tag = soup.select_one(selector)
            if tag:
                match = APP_LINK_ID.search(tag.get("content", ""))
                if match:
                    return match.group(1)
        if url:
            id_match = re.search(r"[?&]id=(\d+)", url)
            if id_match:
                return id_match.group(1)
            return url.split("?")[0].rstrip("/").split("/")[-1] or None
        return None

    def _page_username(self, url: str) -> Optional[str]:
        if not url or "profile.php" in url:
            return None
        segment = url.split("?")[0].rstrip("/").split("/")[-1]
        if segment and not segment.isdigit() and "facebook.com" not in segment:
            return segment
        return None

    def _match_count(self, pattern: "re.Pattern", text: str) -> Optional[int]:
        match = pattern.search(text)
        return parse_abbreviated_number(match.group(1)) if match else None

    def _page_category(self, soup: BeautifulSoup) -> Optional[str]:
        for selector in (
            'a[href*="/pages/category/"]',
            'div[data-key="tab_category"]',
            'span[data-testid="page_category"]',
        ):
            tag = soup.select_one(selector)
            if tag and _text(tag):
                return _text(tag)
        return None

    def _page_image(
        self, soup: BeautifulSoup, selectors: Tuple[str, ...], meta: Optional[str]
    ) -> Optional[str]:
        for selector in selectors:
            tag = soup.select_one(selector)
            if tag and tag.get("src"):
                return tag["src"]
        if meta:
            tag = soup.select_one(meta)
            if tag and tag.get("content"):
                return tag["content"]
        return None

    def _page_verified(self, soup: BeautifulSoup) -> bool:
        return soup.select_one(
            '[aria-label="Verified"], [title="Verified Page"], '
            '[title="Verified Account"], [aria-label="Verified account"]'
        ) is not None

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def parse_comments(self, markup: str) -> List[Comment]:
        """
        Parse comments from Facebook HTML.

        Containers nested inside another matched container become replies
        of that container.
        """
        try:
            soup = self._load(markup)
        except ParseError:
            return []

        dialect = classify_dialect(markup)
        for candidate in (dialect, dialect.other):
            table = self.selectors[candidate]
            for selector in table["comment"]:
                matched = soup.select(selector)
                if not matched:
                    continue
                comments = self._build_comment_tree(matched, table)
                if comments:
                    return comments
        return []

    def _build_comment_tree(self, matched: List[Tag], table: Dict[str, Tuple[str, ...]]) -> List[Comment]:
        ids = {id(tag) for tag in matched}
        children: Dict[Optional[int], List[Tag]] = {}

        for tag in matched:
            owner = self._owner(tag, ids)
            children.setdefault(id(owner) if owner is not None else None, []).append(tag)

        counter = iter(range(len(matched)))

        def build(parent_key: Optional[int]) -> List[Comment]:
            comments = []
            for tag in children.get(parent_key, []):
                index = next(counter)
                try:
                    comment = self._parse_comment_element(tag, index, ids, table)
                except Exception as e:
                    logger.debug(f"Skipping malformed comment: {e}")
                    continue
                comment.replies = build(id(tag))
                if comment.content:
                    comments.append(comment)
            return comments

        return build(None)

    @staticmethod
    def _owner(tag: Tag, ids: Set[int]) -> Optional[Tag]:
        for parent in tag.parents:
            if id(parent) in ids:
                return parent
        return None

    def _own(self, element: Tag, selector: str, ids: Set[int]) -> List[Tag]:
        """Matches of ``selector`` that do not belong to a nested reply."""
        return [m for m in element.select(selector) if self._owner(m, ids) is element]

    def _parse_comment_element(
        self, element: Tag, index: int, ids: Set[int], table: Dict[str, Tuple[str, ...]]
    ) -> Comment:
        author_anchor = next((a for a in self._own(element, "a", ids) if _text(a)), None)
        author = _text(author_anchor) if author_anchor else "Unknown"
        author_href = absolutize(author_anchor.get("href")) if author_anchor else None

        content = ""
        for selector in table["comment_body"]:
            bodies = [_text(tag) for tag in self._own(element, selector, ids)]
            content = " ".join(filter(None, bodies))
            if content:
                break

        if not content:
            content = self._own_text(element, ids, author_anchor)

        timestamp = None
        for tag in self._own(element, "abbr, time", ids):
            timestamp = tag.get("title") or tag.get("datetime") or _text(tag) or None
            if timestamp:
                break

        reactions = 0
        for tag in self._own(element, 'a[href*="reaction"], span[aria-label*="reaction" i]', ids):
            found = COUNT_PATTERN.search(_text(tag) or tag.get("aria-label", ""))
            if found:
                reactions = parse_abbreviated_number(found.group(1)) or 0
                break

        raw_id = element.get("data-commentid") or element.get("id") or ""
        comment_id = raw_id if re.fullmatch(r"\d+(?:_\d+)?", raw_id) else f"comment_{index}"

        return Comment(
            id=comment_id,
            author=author or "Unknown",
            author_url=strip_tracking_params(author_href) if author_href else None,
            content=content[:MAX_COMMENT_LENGTH],
            timestamp=timestamp,
            reactions_count=reactions,
        )

    def _own_text(self, element: Tag, ids: Set[int], author_anchor: Optional[Tag]) -> str:
        """Concatenate text nodes that belong to this comment itself."""
        parts = []
        for string in element.find_all(string=True):
            parent = string.parent
            if parent is None or parent.name in ("script", "style"):
                continue
            if self._owner(string, ids) is not element:
                continue
            if author_anchor is not None and any(node is author_anchor for node in (parent, *parent.parents)):
                continue
            text = _clean(str(string))
            if text and not COMMENT_UI_TOKEN.match(text):
                parts.append(text)
        return " ".join(parts)
