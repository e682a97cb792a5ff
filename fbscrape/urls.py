"""
URL helpers: mbasic rewriting, link normalization and URL classification.
"""

import re
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl, urlencode, urljoin, urlparse, urlunparse

BASE_URL = "https://www.facebook.com"
MBASIC_HOST = "mbasic.facebook.com"

# Query parameters that only carry click/session tracking
TRACKING_PARAMS = {
    "fbclid", "refid", "ref", "ref_component", "ref_page_id", "refsrc",
    "eav", "paipv", "_rdr", "_rdc", "_ft_", "hc_ref", "hc_location",
    "acontext", "notif_t", "notif_id", "comment_tracking", "mibextid",
}
TRACKING_PREFIXES = ("__", "utm_")

_FACEBOOK_HOST = re.compile(r"^(?:(?:www|m|web|touch)\.)?facebook\.com$", re.IGNORECASE)


def to_mbasic_url(url: str) -> str:
    """Rewrite a facebook.com URL to the lightweight mbasic host."""
    parsed = urlparse(url)
    host = parsed.hostname or ""
    if host.lower() == MBASIC_HOST or not _FACEBOOK_HOST.match(host):
        return url
    return urlunparse(parsed._replace(netloc=MBASIC_HOST))


def absolutize(href: Optional[str], base: str = BASE_URL) -> Optional[str]:
    """Resolve a relative link against the site root."""
    if not href:
        return None
    href = href.strip()
    if href.startswith(("http://", "https://")):
        return href
    if href.startswith(("javascript:", "#", "mailto:")):
        return None
    return urljoin(base + "/", href)


def strip_tracking_params(url: str) -> str:
    """Drop tracking query parameters and the fragment, keep the rest."""
    parsed = urlparse(url)
    query = [
        (k, v) for k, v in parse_qsl(parsed.query, keep_blank_values=True)
        if k not in TRACKING_PARAMS and not k.startswith(TRACKING_PREFIXES)
    ]
    return urlunparse(parsed._replace(query=urlencode(query), fragment=""))


def parse_facebook_url(url: str) -> Dict[str, Any]:
    """
    Classify a URL by its path pattern.

    Returns:
        Dict with original_url, type, id, hostname, pathname, is_mobile
        and mbasic_url

    Raises:
        ValueError: if ``url`` is not an absolute http(s) URL
    """
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Invalid URL: {url}")

    path = parsed.path or "/"
    url_type = "unknown"
    url_id = None

    def first(pattern: str) -> Optional[str]:
        match = re.search(pattern, path)
        return match.group(1) if match else None

    if "/posts/" in path:
        url_type, url_id = "post", first(r"/posts/(\d+)")
    elif "/photos/" in path or path.startswith("/photo.php"):
        url_type = "photo"
        url_id = first(r"/photos/[^/]+/(\d+)") or dict(parse_qsl(parsed.query)).get("fbid")
    elif "/videos/" in path or path.rstrip("/") == "/watch":
        url_type = "video"
        url_id = first(r"/videos/(?:[^/]+/)?(\d+)") or dict(parse_qsl(parsed.query)).get("v")
    elif "/groups/" in path:
        url_type, url_id = "group", first(r"/groups/([^/]+)")
    elif "/events/" in path:
        url_type, url_id = "event", first(r"/events/(\d+)")
    elif "/marketplace/" in path:
        url_type, url_id = "marketplace", first(r"/item/(\d+)")
    elif "story.php" in path or "permalink.php" in path:
        url_type = "story"
        url_id = dict(parse_qsl(parsed.query)).get("story_fbid")
    elif path == "/profile.php":
        url_type = "page_or_profile"
        url_id = dict(parse_qsl(parsed.query)).get("id")
    elif re.match(r"^/[^/]+/?$", path):
        url_type, url_id = "page_or_profile", first(r"^/([^/]+)")

    hostname = parsed.hostname or ""
    return {
        "original_url": url,
        "type": url_type,
        "id": url_id,
        "hostname": hostname,
        "pathname": path,
        "is_mobile": hostname.startswith("m.") or "mbasic" in hostname,
        "mbasic_url": to_mbasic_url(url),
    }
