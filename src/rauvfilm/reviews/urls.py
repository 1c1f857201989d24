"""Review URL classification and normalization.

Normalized URLs are the duplicate-detection key: http/https, ``www.``,
mobile hosts, tracking parameters and trailing slashes do not make a link
a different review.
"""

import re
from urllib.parse import parse_qsl, urlencode, urlparse

from rauvfilm.storage.models import ReviewPlatform

TRACKING_PARAMS = frozenset({
    "fbclid",
    "gclid",
    "ref",
    "from",
    "share",
    "proxyReferer",
    "trackingCode",
    "redirect",
    "directRef",
})

_POST_PATH = re.compile(r"^/([^/]+)/(\d+)")
_INSTAGRAM_PATH = re.compile(r"^/(p|reel)/([A-Za-z0-9_-]+)")

BLOG_HOSTS = ("blog.naver.com", "m.blog.naver.com")
CAFE_HOSTS = ("cafe.naver.com", "m.cafe.naver.com")


def is_valid_review_url(url: str | None) -> bool:
    """Check that a submitted link is an absolute http(s) URL."""
    if not url or not url.strip():
        return False
    parsed = urlparse(url.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def detect_platform(url: str) -> ReviewPlatform:
    """Classify a review URL by hosting platform."""
    lower = url.lower()
    if "blog.naver.com" in lower:
        return ReviewPlatform.NAVER_BLOG
    if "cafe.naver.com" in lower:
        return ReviewPlatform.NAVER_CAFE
    if "instagram.com" in lower:
        return ReviewPlatform.INSTAGRAM
    return ReviewPlatform.OTHER


def _is_tracking_param(name: str) -> bool:
    return name.startswith("utm_") or name in TRACKING_PARAMS


def _post_key(url: str) -> tuple[str, str, str] | None:
    """Extract (host, owner, post id) for Naver blog/cafe posts."""
    parsed = urlparse(url.strip())
    host = (parsed.hostname or "").lower().removeprefix("www.")
    params = dict(parse_qsl(parsed.query))

    if host in BLOG_HOSTS:
        match = _POST_PATH.match(parsed.path)
        if match:
            return "blog.naver.com", match.group(1), match.group(2)
        if params.get("blogId") and params.get("logNo"):
            return "blog.naver.com", params["blogId"], params["logNo"]

    if host in CAFE_HOSTS:
        match = _POST_PATH.match(parsed.path)
        if match:
            return "cafe.naver.com", match.group(1), match.group(2)
        if params.get("clubid") and params.get("articleid"):
            return "cafe.naver.com", params["clubid"], params["articleid"]

    return None


def normalize_review_url(url: str) -> str:
    """Normalize a review URL into a scheme-less comparison key.

    Examples:
        https://m.blog.naver.com/user/223?utm_source=x -> blog.naver.com/user/223
        https://blog.naver.com/PostView.naver?blogId=user&logNo=223 -> blog.naver.com/user/223
        https://www.instagram.com/p/AbC/?igsh=1 -> instagram.com/p/AbC

    Args:
        url: Submitted URL

    Returns:
        Normalized key (idempotent)
    """
    raw = url.strip()
    if "://" not in raw:
        raw = f"https://{raw}"

    try:
        parsed = urlparse(raw)
        host = (parsed.hostname or "").lower()
    except ValueError:
        return url.strip().lower()
    if not host:
        return url.strip().lower()

    host = host.removeprefix("www.")

    post = _post_key(raw)
    if post:
        return "/".join(post)

    if host == "instagram.com":
        match = _INSTAGRAM_PATH.match(parsed.path)
        if match:
            return f"instagram.com/{match.group(1)}/{match.group(2)}"

    params = [
        (name, value)
        for name, value in parse_qsl(parsed.query, keep_blank_values=True)
        if not _is_tracking_param(name)
    ]
    path = parsed.path.rstrip("/")
    query = urlencode(sorted(params))
    return f"{host}{path}{'?' + query if query else ''}"


def is_same_review_url(first: str, second: str) -> bool:
    """Check whether two URLs point at the same review."""
    return normalize_review_url(first) == normalize_review_url(second)


def fetchable_url(url: str) -> str:
    """Direct article URL to fetch for verification.

    Naver blog pages wrap the post in an iframe, so the ``PostView`` URL is
    fetched instead. Cafe articles are fetched from the mobile site.
    """
    post = _post_key(url)
    if post is None:
        return url.strip()

    host, owner, post_id = post
    if host == "blog.naver.com":
        return f"https://blog.naver.com/PostView.naver?blogId={owner}&logNo={post_id}"
    return f"https://m.cafe.naver.com/{owner}/{post_id}"
