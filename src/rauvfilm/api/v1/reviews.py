"""Review submission API v1 endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel

from rauvfilm.api.deps import get_review_service
from rauvfilm.api.rate_limit import REVIEW_SUBMIT_LIMIT, limiter
from rauvfilm.logging_config import get_logger
from rauvfilm.reviews.service import ReviewService
from rauvfilm.storage.models import ReviewSubmission, ReviewType

logger = get_logger(__name__)

router = APIRouter(prefix="/reservations/{reservation_id}/reviews", tags=["reviews"])


class ReviewSubmitRequest(BaseModel):
    """Request to submit a review link."""
    url: str
    review_type: ReviewType = ReviewType.BOOKING


class ReviewSubmissionResponse(BaseModel):
    """A review submission."""
    id: int
    review_url: str
    review_type: str
    platform: str
    status: str
    title_valid: bool | None = None
    content_valid: bool | None = None
    character_count: int | None = None
    reject_reason: str | None = None
    title: str | None = None
    created_at: datetime | None = None


class ReviewSubmitResponse(BaseModel):
    """Outcome of a review submission."""
    submission: ReviewSubmissionResponse
    message: str
    review_discount: int | None = None
    raw_footage_unlocked: bool | None = None


def submission_response(submission: ReviewSubmission) -> ReviewSubmissionResponse:
    return ReviewSubmissionResponse(
        id=submission.id,
        review_url=submission.review_url,
        review_type=submission.review_type,
        platform=submission.platform,
        status=submission.status,
        title_valid=submission.title_valid,
        content_valid=submission.content_valid,
        character_count=submission.character_count,
        reject_reason=submission.reject_reason,
        title=submission.title,
        created_at=submission.created_at,
    )


@router.post("", response_model=ReviewSubmitResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(REVIEW_SUBMIT_LIMIT)
async def submit_review(
    request: Request,
    reservation_id: int,
    body: ReviewSubmitRequest,
    service: ReviewService = Depends(get_review_service),
):
    """Submit a review link.

    Naver blog and cafe posts are checked automatically; everything else
    waits for an admin.
    """
    result = await service.submit(reservation_id, body.url, body.review_type)
    return ReviewSubmitResponse(
        submission=submission_response(result.submission),
        message=result.message,
        review_discount=result.gate.review_discount if result.gate else None,
        raw_footage_unlocked=result.gate.raw_footage_unlocked if result.gate else None,
    )


@router.get("", response_model=list[ReviewSubmissionResponse])
async def list_reviews(
    reservation_id: int,
    service: ReviewService = Depends(get_review_service),
):
    """List a reservation's review submissions."""
    return [submission_response(s) for s in service.list_for_reservation(reservation_id)]
