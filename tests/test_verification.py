import asyncio

import httpx

from rauvfilm.reviews.fetcher import ReviewFetcher
from rauvfilm.reviews.verification import (
    CAFE_PRIVATE_MESSAGE,
    validate_content,
    validate_title,
    verification_message,
    verify_review,
)
from rauvfilm.settings import settings
from rauvfilm.storage.models import ReviewPlatform, ReviewStatus

BLOG_URL = "https://blog.naver.com/rauvlover/223344"
CAFE_URL = "https://cafe.naver.com/weddingcafe/12345"


def page(title: str, body: str) -> str:
    return (
        f'<html><head><meta property="og:title" content="{title} : 네이버 블로그"></head>'
        f'<body><div class="se-main-container">{body}</div></body></html>'
    )


def run_verify(url, handler, **kwargs):
    async def _verify():
        async with ReviewFetcher(transport=httpx.MockTransport(handler)) as fetcher:
            return await verify_review(url, fetcher, **kwargs)

    return asyncio.run(_verify())


def serve(html, status_code=200, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, text=html)

    return handler


def test_valid_review_is_auto_approved():
    seen = []
    result = run_verify(BLOG_URL, serve(page("라우브필름 본식DVD 후기", "가" * 600), seen=seen))

    assert result.status == ReviewStatus.AUTO_APPROVED
    assert result.can_auto_verify
    assert result.title_valid and result.content_valid
    assert result.character_count == 600
    assert result.title == "라우브필름 본식DVD 후기"
    assert result.excerpt == "가" * 200 + "..."

    request = seen[0]
    assert request.url.path == "/PostView.naver"
    assert request.url.params["blogId"] == "rauvlover"
    assert request.url.params["logNo"] == "223344"
    assert request.headers["User-Agent"] == settings.desktop_user_agent


def test_short_body_goes_to_manual_review():
    result = run_verify(BLOG_URL, serve(page("rauvfilm wedding", "나 " * 480)))

    assert result.status == ReviewStatus.MANUAL_REVIEW
    assert result.title_valid is True
    assert result.content_valid is False
    assert result.character_count == 480
    assert not result.can_auto_verify


def test_title_without_keyword_goes_to_manual_review():
    result = run_verify(BLOG_URL, serve(page("우리 결혼식 이야기", "다" * 700)))

    assert result.status == ReviewStatus.MANUAL_REVIEW
    assert result.title_valid is False
    assert result.content_valid is True


def test_keywords_and_minimum_can_be_overridden():
    result = run_verify(
        BLOG_URL,
        serve(page("Wedding film review", "라" * 120)),
        keywords=["wedding"],
        min_characters=100,
    )
    assert result.status == ReviewStatus.AUTO_APPROVED


def test_http_error_goes_to_manual_review():
    result = run_verify(BLOG_URL, serve("not found", status_code=404))

    assert result.status == ReviewStatus.MANUAL_REVIEW
    assert "HTTP 404" in result.error_message
    assert result.title_valid is None
    assert result.character_count is None


def test_cafe_http_error_asks_for_public_article():
    result = run_verify(CAFE_URL, serve("forbidden", status_code=403))

    assert result.platform == ReviewPlatform.NAVER_CAFE
    assert result.status == ReviewStatus.MANUAL_REVIEW
    assert result.error_message == CAFE_PRIVATE_MESSAGE


def test_cafe_fetch_uses_mobile_article():
    seen = []
    run_verify(CAFE_URL, serve(page("라우브필름 후기", "마" * 600), seen=seen))

    assert str(seen[0].url) == "https://m.cafe.naver.com/weddingcafe/12345"
    assert seen[0].headers["User-Agent"] == settings.mobile_user_agent


def test_timeout_goes_to_manual_review():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    result = run_verify(BLOG_URL, handler)

    assert result.status == ReviewStatus.MANUAL_REVIEW
    assert "timed out" in result.error_message


def test_transport_error_goes_to_manual_review():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = run_verify(BLOG_URL, handler)

    assert result.status == ReviewStatus.MANUAL_REVIEW
    assert result.error_message


def test_unreadable_page_goes_to_manual_review():
    result = run_verify(BLOG_URL, serve(page("라우브필름 후기", "비공개 글입니다")))

    assert result.status == ReviewStatus.MANUAL_REVIEW
    assert "private" in result.error_message
    assert result.title == "라우브필름 후기"


def test_instagram_is_never_fetched():
    seen = []
    result = run_verify("https://www.instagram.com/p/AbC123/", serve("", seen=seen))

    assert seen == []
    assert result.platform == ReviewPlatform.INSTAGRAM
    assert result.status == ReviewStatus.MANUAL_REVIEW
    assert not result.can_auto_verify


def test_other_host_is_never_fetched():
    seen = []
    result = run_verify("https://example.com/my-review", serve("", seen=seen))

    assert seen == []
    assert result.platform == ReviewPlatform.OTHER
    assert result.status == ReviewStatus.MANUAL_REVIEW


def test_validate_title_is_case_insensitive():
    assert validate_title("My RAUVFILM review", ["rauvfilm"])
    assert not validate_title("My wedding", ["rauvfilm"])
    assert not validate_title("", ["rauvfilm"])


def test_validate_content_ignores_whitespace():
    assert validate_content("가 나\n다\t라", 4) == (4, True)
    assert validate_content("가 나", 500) == (2, False)


def test_verification_message_lists_issues():
    result = run_verify(BLOG_URL, serve(page("우리 결혼식", "바" * 100)))
    message = verification_message(result)

    assert "title must contain" in message
    assert "currently 100" in message


def test_result_to_dict_uses_plain_values():
    result = run_verify("https://www.instagram.com/p/AbC123/", serve(""))
    data = result.to_dict()

    assert data["platform"] == "INSTAGRAM"
    assert data["status"] == "MANUAL_REVIEW"
