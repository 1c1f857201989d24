"""Automatic review verification.

Checks performed:
1. Title contains at least one required keyword (case-insensitive)
2. Body is at least ``min_review_characters`` long, whitespace excluded
3. Platform routing: Naver blog/cafe are fetched, Instagram and other hosts
   always go to manual review

Anything that cannot be checked degrades to MANUAL_REVIEW; nothing here
raises for network problems.
"""

from dataclasses import asdict, dataclass
from typing import Any, Sequence

import httpx

from rauvfilm.logging_config import get_logger
from rauvfilm.reviews.extractors import get_extractor
from rauvfilm.reviews.fetcher import ReviewFetcher
from rauvfilm.reviews.urls import detect_platform, fetchable_url
from rauvfilm.settings import settings
from rauvfilm.storage.models import ReviewPlatform, ReviewStatus

logger = get_logger(__name__)

# Below this many characters the page is treated as a login wall / private post
MIN_READABLE_CHARS = 30

PLATFORM_NAMES: dict[ReviewPlatform, str] = {
    ReviewPlatform.NAVER_BLOG: "Naver Blog",
    ReviewPlatform.NAVER_CAFE: "Naver Cafe",
    ReviewPlatform.INSTAGRAM: "Instagram",
    ReviewPlatform.OTHER: "Other",
}

CAFE_PRIVATE_MESSAGE = (
    "The Naver Cafe review could not be read. Set the article visibility to "
    "public and submit it again to have it checked automatically."
)


@dataclass
class VerificationResult:
    """Outcome of verifying one review URL."""

    platform: ReviewPlatform
    can_auto_verify: bool
    status: ReviewStatus
    title_valid: bool | None = None
    content_valid: bool | None = None
    character_count: int | None = None
    error_message: str | None = None
    title: str | None = None
    excerpt: str | None = None
    image_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["platform"] = self.platform.value
        data["status"] = self.status.value
        return data


def validate_title(title: str, keywords: Sequence[str] | None = None) -> bool:
    """Check that a title contains at least one required keyword."""
    keywords = keywords if keywords is not None else settings.required_review_keywords
    lower_title = (title or "").lower()
    return any(keyword.lower() in lower_title for keyword in keywords)


def validate_content(content: str, min_characters: int | None = None) -> tuple[int, bool]:
    """Count body characters (whitespace excluded) against the minimum.

    Returns:
        Tuple of (character count, is valid)
    """
    min_characters = min_characters if min_characters is not None else settings.min_review_characters
    character_count = sum(1 for ch in (content or "") if not ch.isspace())
    return character_count, character_count >= min_characters


def _manual(platform: ReviewPlatform, message: str) -> VerificationResult:
    return VerificationResult(
        platform=platform,
        can_auto_verify=False,
        status=ReviewStatus.MANUAL_REVIEW,
        error_message=message,
    )


async def verify_review(
    url: str,
    fetcher: ReviewFetcher | None = None,
    keywords: Sequence[str] | None = None,
    min_characters: int | None = None,
) -> VerificationResult:
    """Fetch a review page and decide whether it can be auto-approved.

    Args:
        url: Submitted review URL
        fetcher: Fetcher to use (a private one is created and closed otherwise)
        keywords: Required title keywords (defaults to settings)
        min_characters: Minimum body length (defaults to settings)

    Returns:
        Verification result; AUTO_APPROVED only when title and body both pass
    """
    platform = detect_platform(url)
    extractor = get_extractor(platform)

    if platform == ReviewPlatform.INSTAGRAM:
        return _manual(platform, "Instagram reviews cannot be verified automatically. An admin will check it.")
    if extractor is None:
        return _manual(platform, "Unsupported platform. An admin will check it.")

    owns_fetcher = fetcher is None
    fetcher = fetcher or ReviewFetcher()
    try:
        response = await fetcher.get(fetchable_url(url), platform)
        html = response.text
    except httpx.HTTPStatusError as e:
        logger.warning("review_fetch_failed", url=url, status=e.response.status_code)
        if platform == ReviewPlatform.NAVER_CAFE:
            return _manual(platform, CAFE_PRIVATE_MESSAGE)
        return _manual(platform, f"Could not load the page (HTTP {e.response.status_code}).")
    except httpx.TimeoutException:
        logger.warning("review_fetch_timeout", url=url)
        return _manual(platform, "Loading the review page timed out. An admin will check it.")
    except httpx.HTTPError as e:
        logger.warning("review_fetch_error", url=url, error=str(e))
        return _manual(platform, "An error occurred while checking the review page. An admin will check it.")
    finally:
        if owns_fetcher:
            await fetcher.close()

    extracted = extractor.extract(html)

    readable_chars, _ = validate_content(extracted.body, MIN_READABLE_CHARS)
    if readable_chars < MIN_READABLE_CHARS:
        logger.info("review_unreadable", url=url, body_chars=readable_chars)
        message = (
            CAFE_PRIVATE_MESSAGE
            if platform == ReviewPlatform.NAVER_CAFE
            else "The post could not be read. It may be private. An admin will check it."
        )
        result = _manual(platform, message)
        result.title = extracted.title or None
        return result

    title_valid = validate_title(extracted.title, keywords)
    character_count, content_valid = validate_content(extracted.body, min_characters)
    can_auto_verify = title_valid and content_valid

    error_message = None
    if not can_auto_verify and platform == ReviewPlatform.NAVER_CAFE:
        error_message = (
            "The Naver Cafe review does not meet the title or length requirements. "
            "Check that the article is public."
        )

    result = VerificationResult(
        platform=platform,
        can_auto_verify=can_auto_verify,
        status=ReviewStatus.AUTO_APPROVED if can_auto_verify else ReviewStatus.MANUAL_REVIEW,
        title_valid=title_valid,
        content_valid=content_valid,
        character_count=character_count,
        error_message=error_message,
        title=extracted.title or None,
        excerpt=extracted.excerpt or None,
        image_url=extracted.image_url,
    )
    logger.info(
        "review_verified",
        url=url,
        platform=platform.value,
        status=result.status.value,
        title_valid=title_valid,
        character_count=character_count,
    )
    return result


def verification_message(
    result: VerificationResult,
    keywords: Sequence[str] | None = None,
    min_characters: int | None = None,
) -> str:
    """User-facing message for a verification result."""
    if result.error_message:
        return result.error_message

    if result.status == ReviewStatus.AUTO_APPROVED:
        return "Your review was approved automatically. The discount has been applied."

    keywords = keywords if keywords is not None else settings.required_review_keywords
    min_characters = min_characters if min_characters is not None else settings.min_review_characters

    issues = []
    if result.title_valid is False:
        issues.append(f"- The title must contain a required keyword ({', '.join(keywords[:2])} etc.).")
    if result.content_valid is False:
        issues.append(
            f"- The body must be at least {min_characters} characters (currently {result.character_count})."
        )

    if issues:
        return "Review check result:\n" + "\n".join(issues) + "\n\nAn admin will review it."
    return "Your review was submitted. An admin will review it."
