import pytest

from rauvfilm.reviews.urls import (
    detect_platform,
    fetchable_url,
    is_same_review_url,
    is_valid_review_url,
    normalize_review_url,
)
from rauvfilm.storage.models import ReviewPlatform


@pytest.mark.parametrize(
    "url",
    [
        "https://blog.naver.com/user1/223344",
        "http://blog.naver.com/user1/223344/",
        "https://www.blog.naver.com/user1/223344",
        "https://m.blog.naver.com/user1/223344?utm_source=kakao&utm_medium=share",
        "https://blog.naver.com/PostView.naver?blogId=user1&logNo=223344",
        "blog.naver.com/user1/223344",
    ],
)
def test_blog_variants_share_one_key(url):
    assert normalize_review_url(url) == "blog.naver.com/user1/223344"


def test_cafe_variants_share_one_key():
    expected = "cafe.naver.com/weddingcafe/12345"
    assert normalize_review_url("https://cafe.naver.com/weddingcafe/12345?art=abc") == expected
    assert normalize_review_url("https://m.cafe.naver.com/weddingcafe/12345") == expected


def test_instagram_key_drops_share_params():
    assert normalize_review_url("https://www.instagram.com/p/AbC123/?igsh=xyz") == "instagram.com/p/AbC123"
    assert normalize_review_url("https://instagram.com/reel/Zz_9/") == "instagram.com/reel/Zz_9"


def test_other_hosts_keep_sorted_query_without_tracking():
    url = "HTTPS://Example.com/review/?b=2&a=1&fbclid=zzz&utm_campaign=x"
    assert normalize_review_url(url) == "example.com/review?a=1&b=2"


@pytest.mark.parametrize(
    "url",
    [
        "https://m.blog.naver.com/user1/223344?utm_source=kakao",
        "https://www.instagram.com/p/AbC123/?igsh=xyz",
        "https://Example.com/review/?b=2&a=1",
    ],
)
def test_normalization_is_idempotent(url):
    once = normalize_review_url(url)
    assert normalize_review_url(once) == once


def test_is_same_review_url():
    assert is_same_review_url(
        "https://blog.naver.com/user1/223344",
        "https://m.blog.naver.com/user1/223344/?fbclid=1",
    )
    assert not is_same_review_url(
        "https://blog.naver.com/user1/223344",
        "https://blog.naver.com/user1/223345",
    )


def test_detect_platform():
    assert detect_platform("https://m.blog.naver.com/a/1") == ReviewPlatform.NAVER_BLOG
    assert detect_platform("https://cafe.naver.com/a/1") == ReviewPlatform.NAVER_CAFE
    assert detect_platform("https://www.instagram.com/p/x") == ReviewPlatform.INSTAGRAM
    assert detect_platform("https://example.com/post") == ReviewPlatform.OTHER


def test_is_valid_review_url():
    assert is_valid_review_url("https://blog.naver.com/user1/223344")
    assert not is_valid_review_url("blog.naver.com/user1/223344")
    assert not is_valid_review_url("ftp://example.com/file")
    assert not is_valid_review_url("   ")
    assert not is_valid_review_url(None)


def test_fetchable_url():
    assert (
        fetchable_url("https://m.blog.naver.com/user1/223344?utm_source=x")
        == "https://blog.naver.com/PostView.naver?blogId=user1&logNo=223344"
    )
    assert fetchable_url("https://cafe.naver.com/weddingcafe/12345") == "https://m.cafe.naver.com/weddingcafe/12345"
    assert fetchable_url("https://example.com/post ") == "https://example.com/post"
