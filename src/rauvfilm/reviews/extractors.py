"""Per-platform extraction of review title, body and metadata from HTML."""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from selectolax.parser import HTMLParser

from rauvfilm.logging_config import get_logger
from rauvfilm.storage.models import ReviewPlatform

logger = get_logger(__name__)

_WHITESPACE = re.compile(r"\s+")

# A container must yield more than this many characters to be taken as the body
MIN_CONTAINER_CHARS = 50
EXCERPT_LENGTH = 200


@dataclass
class ExtractedReview:
    """Content pulled from a review page."""

    title: str = ""
    body: str = ""
    image_url: str | None = None

    @property
    def excerpt(self) -> str:
        if len(self.body) <= EXCERPT_LENGTH:
            return self.body
        return self.body[:EXCERPT_LENGTH].rstrip() + "..."


@dataclass
class ExtractorConfig:
    """Selectors and decorations for one platform."""

    platform: ReviewPlatform
    body_selectors: list[str] = field(default_factory=list)
    title_suffixes: list[str] = field(default_factory=list)
    title_prefixes: list[str] = field(default_factory=list)


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


class ContentExtractor(ABC):
    """Base class for platform extractors."""

    config: ExtractorConfig = ExtractorConfig(platform=ReviewPlatform.OTHER)

    def __init__(self):
        self.logger = get_logger(f"{__name__}.{self.config.platform.value.lower()}")

    @property
    def platform(self) -> ReviewPlatform:
        return self.config.platform

    def extract(self, html: str) -> ExtractedReview:
        """Parse a page into title, body and image.

        Args:
            html: Raw page HTML

        Returns:
            Extracted content (empty strings when nothing matched)
        """
        parser = HTMLParser(html)
        parser.strip_tags(["script", "style", "noscript"])

        review = ExtractedReview(
            title=self.extract_title(parser),
            body=self.extract_body(parser),
            image_url=self._meta(parser, "og:image"),
        )
        self.logger.debug(
            "review_extracted",
            title=review.title[:50],
            body_chars=len(review.body),
        )
        return review

    def extract_title(self, parser: HTMLParser) -> str:
        """Title from ``og:title``, falling back to ``<title>``."""
        title = self._meta(parser, "og:title")
        if not title:
            node = parser.css_first("title")
            title = node.text() if node else ""
        return self.clean_title(collapse_whitespace(title))

    def clean_title(self, title: str) -> str:
        """Strip platform decorations such as ``" : 네이버 블로그"``."""
        for suffix in self.config.title_suffixes:
            if title.endswith(suffix):
                title = title[: -len(suffix)]
        for prefix in self.config.title_prefixes:
            if title.startswith(prefix):
                title = title[len(prefix):]
        return title.strip()

    @abstractmethod
    def extract_body(self, parser: HTMLParser) -> str:
        """Extract the post body text.

        Args:
            parser: Parsed page with scripts and styles removed

        Returns:
            Whitespace-collapsed body text
        """
        pass

    def _first_container_text(self, parser: HTMLParser) -> str:
        """Text of the first body selector yielding a real post body."""
        for selector in self.config.body_selectors:
            node = parser.css_first(selector)
            if node is None:
                continue
            text = collapse_whitespace(node.text(separator=" "))
            if len(text) > MIN_CONTAINER_CHARS:
                return text
        return ""

    def _page_text(self, parser: HTMLParser) -> str:
        body = parser.body
        if body is None:
            return ""
        return collapse_whitespace(body.text(separator=" "))

    @staticmethod
    def _meta(parser: HTMLParser, prop: str) -> str | None:
        node = parser.css_first(f'meta[property="{prop}"]')
        if node is None:
            return None
        content = node.attributes.get("content")
        return content.strip() if content else None


class NaverBlogExtractor(ContentExtractor):
    """Naver blog posts (SmartEditor 3 and legacy layouts)."""

    config = ExtractorConfig(
        platform=ReviewPlatform.NAVER_BLOG,
        body_selectors=[
            ".se-main-container",  # SmartEditor 3
            "#postViewArea",       # SmartEditor 2
            ".post-view",          # Legacy
            "#post-view",
            ".post_ct",            # Mobile
        ],
        title_suffixes=[" : 네이버 블로그", ": 네이버 블로그", " - 네이버 블로그"],
    )

    def extract_body(self, parser: HTMLParser) -> str:
        return self._first_container_text(parser) or self._page_text(parser)


class NaverCafeExtractor(ContentExtractor):
    """Naver cafe articles (public articles only)."""

    config = ExtractorConfig(
        platform=ReviewPlatform.NAVER_CAFE,
        body_selectors=[
            ".se-main-container",
            ".article_viewer",
            ".ContentRenderer",
            ".article_body",
            "#postContentArea",
            "#tbody",
        ],
        title_suffixes=[" : 네이버 카페", ": 네이버 카페", " - 네이버 카페"],
        title_prefixes=["네이버 카페 - "],
    )

    def extract_body(self, parser: HTMLParser) -> str:
        return self._first_container_text(parser) or self._page_text(parser)


EXTRACTORS: dict[ReviewPlatform, type[ContentExtractor]] = {
    ReviewPlatform.NAVER_BLOG: NaverBlogExtractor,
    ReviewPlatform.NAVER_CAFE: NaverCafeExtractor,
}


def get_extractor(platform: ReviewPlatform) -> ContentExtractor | None:
    """Extractor for a platform, or None where pages cannot be read automatically."""
    extractor_cls = EXTRACTORS.get(platform)
    return extractor_cls() if extractor_cls else None
