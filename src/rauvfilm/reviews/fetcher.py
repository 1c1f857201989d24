"""HTTP fetching of review pages."""

import httpx

from rauvfilm.logging_config import get_logger
from rauvfilm.settings import settings
from rauvfilm.storage.models import ReviewPlatform

logger = get_logger(__name__)

PLATFORM_REFERERS: dict[ReviewPlatform, str] = {
    ReviewPlatform.NAVER_BLOG: "https://blog.naver.com/",
    ReviewPlatform.NAVER_CAFE: "https://m.cafe.naver.com/",
}


class ReviewFetcher:
    """Fetches review pages with a bounded timeout.

    A single attempt per URL: a failed fetch degrades the submission to
    manual review instead of being retried.
    """

    def __init__(
        self,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize fetcher.

        Args:
            timeout: Request timeout in seconds (defaults to settings)
            transport: Optional httpx transport (used to stub the network)
        """
        self.timeout = timeout or settings.request_timeout_seconds
        self.client = httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=transport,
        )

    async def close(self) -> None:
        """Close HTTP client."""
        await self.client.aclose()

    def headers_for(self, platform: ReviewPlatform) -> dict[str, str]:
        """Request headers for a platform (cafe pages are served to mobile agents)."""
        user_agent = (
            settings.mobile_user_agent
            if platform == ReviewPlatform.NAVER_CAFE
            else settings.desktop_user_agent
        )
        headers = {
            "User-Agent": user_agent,
            "Accept": "text/html,application/xhtml+xml",
            "Accept-Language": "ko-KR,ko;q=0.9,en;q=0.8",
        }
        referer = PLATFORM_REFERERS.get(platform)
        if referer:
            headers["Referer"] = referer
        return headers

    async def get(self, url: str, platform: ReviewPlatform) -> httpx.Response:
        """GET a review page.

        Raises:
            httpx.HTTPStatusError: Non-2xx response
            httpx.HTTPError: Timeout or transport failure
        """
        logger.debug("review_fetch", url=url, platform=platform.value)
        response = await self.client.get(url, headers=self.headers_for(platform))
        response.raise_for_status()
        return response

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
