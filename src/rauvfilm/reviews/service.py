"""Review submission service: intake, duplicate detection, approval."""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from rauvfilm.errors import (
    DuplicateReviewError,
    InvalidReviewUrlError,
    InvalidStateError,
    NotFoundError,
    SubmissionLimitError,
    ValidationError,
)
from rauvfilm.logging_config import get_logger, reservation_context
from rauvfilm.pricing.policy import DiscountPolicy, ProductTier
from rauvfilm.reviews.discount_gate import ReviewDiscountGate, ReviewGateResult
from rauvfilm.reviews.fetcher import ReviewFetcher
from rauvfilm.reviews.urls import detect_platform, is_valid_review_url, normalize_review_url
from rauvfilm.reviews.verification import VerificationResult, verification_message, verify_review
from rauvfilm.storage.db import Database, db
from rauvfilm.storage.models import (
    CuratedReview,
    Reservation,
    ReviewPlatform,
    ReviewStatus,
    ReviewSubmission,
    ReviewType,
)
from rauvfilm.storage.repo import (
    CuratedReviewRepository,
    ReservationRepository,
    ReviewSubmissionRepository,
)
from rauvfilm.sync.synchronizer import DualRecordSynchronizer

logger = get_logger(__name__)

# Booking reviews per reservation
BOOKING_REVIEW_LIMIT = 3
ECONOMY_BOOKING_REVIEW_LIMIT = 1
# Shooting reviews: one blog post plus one cafe article
SHOOTING_REVIEW_LIMIT = 2
SHOOTING_REVIEW_PER_PLATFORM = 1


@dataclass
class SubmissionResult:
    """Outcome of a review submission."""

    submission: ReviewSubmission
    verification: VerificationResult
    message: str
    gate: ReviewGateResult | None = None


class ReviewService:
    """Service for customer review submissions."""

    def __init__(
        self,
        database: Database | None = None,
        policy: DiscountPolicy | None = None,
        gate: ReviewDiscountGate | None = None,
    ):
        self.db = database or db
        self.policy = policy or DiscountPolicy.from_settings()
        self.gate = gate or ReviewDiscountGate(
            self.policy, DualRecordSynchronizer(self.db, self.policy)
        )

    def check_duplicate(self, session: Session, url: str, reservation_id: int | None = None) -> None:
        """Reject a URL that is already curated or submitted anywhere.

        Rejected submissions do not count, so a customer may resubmit a
        link after fixing the post.

        Raises:
            DuplicateReviewError: URL normalizes to an existing review
        """
        normalized = normalize_review_url(url)

        for review in CuratedReviewRepository(session).list_all():
            if normalize_review_url(review.source_url) == normalized:
                raise DuplicateReviewError(
                    f"This review is already registered ({review.title or 'untitled'})",
                    duplicate_type="admin",
                )

        existing = ReviewSubmissionRepository(session).find_active_by_normalized_url(normalized)
        if existing is not None:
            if reservation_id is not None and existing.reservation_id == reservation_id:
                message = "You have already submitted this review"
            else:
                message = "This review URL was already submitted by another customer"
            raise DuplicateReviewError(message, duplicate_type="customer")

    def check_limits(
        self,
        session: Session,
        reservation: Reservation,
        review_type: ReviewType,
        platform: ReviewPlatform,
    ) -> None:
        """Enforce per-reservation submission limits.

        Raises:
            SubmissionLimitError: Limit reached
        """
        submissions = ReviewSubmissionRepository(session)

        if review_type == ReviewType.SHOOTING:
            if submissions.count_active(reservation.id, review_type.value) >= SHOOTING_REVIEW_LIMIT:
                raise SubmissionLimitError(
                    f"At most {SHOOTING_REVIEW_LIMIT} shooting reviews (one blog, one cafe) can be submitted"
                )
            if platform in (ReviewPlatform.NAVER_BLOG, ReviewPlatform.NAVER_CAFE):
                count = submissions.count_active(reservation.id, review_type.value, platform.value)
                if count >= SHOOTING_REVIEW_PER_PLATFORM:
                    raise SubmissionLimitError(
                        f"Only one {platform.value} shooting review can be submitted"
                    )
            return

        limit = (
            ECONOMY_BOOKING_REVIEW_LIMIT
            if reservation.product_tier == ProductTier.ECONOMY.value
            else BOOKING_REVIEW_LIMIT
        )
        if submissions.count_active(reservation.id, review_type.value) >= limit:
            raise SubmissionLimitError(f"At most {limit} booking reviews can be submitted")

    def _precheck(
        self, session: Session, reservation_id: int, url: str, review_type: ReviewType, lock: bool
    ) -> Reservation:
        reservations = ReservationRepository(session)
        reservation = (
            reservations.get_for_update(reservation_id) if lock else reservations.get_by_id(reservation_id)
        )
        if reservation is None:
            raise NotFoundError("Reservation", reservation_id)
        self.check_duplicate(session, url, reservation_id)
        self.check_limits(session, reservation, review_type, detect_platform(url))
        return reservation

    async def submit(
        self,
        reservation_id: int,
        url: str,
        review_type: ReviewType | str = ReviewType.BOOKING,
        fetcher: ReviewFetcher | None = None,
    ) -> SubmissionResult:
        """Submit a review link for a reservation.

        Duplicate and limit checks run before anything is fetched, and run
        again inside the write transaction. The submission row and any
        discount it earns are written together.

        Args:
            reservation_id: Reservation ID
            url: Review URL as submitted
            review_type: "booking" or "shooting"
            fetcher: Optional fetcher (a private one is used otherwise)

        Returns:
            Submission result with verification outcome and message
        """
        if not is_valid_review_url(url):
            raise InvalidReviewUrlError("Please enter a valid review URL")
        url = url.strip()
        try:
            review_type = ReviewType(review_type)
        except ValueError as e:
            raise ValidationError(f"Unknown review type: {review_type}") from e

        with self.db.session() as session:
            self._precheck(session, reservation_id, url, review_type, lock=False)

        with reservation_context(reservation_id, review_url=url):
            verification = await verify_review(url, fetcher)

        with self.db.session() as session:
            reservation = self._precheck(session, reservation_id, url, review_type, lock=True)

            submission = ReviewSubmission(
                reservation_id=reservation.id,
                review_url=url,
                normalized_url=normalize_review_url(url),
                review_type=review_type.value,
                platform=verification.platform.value,
                status=verification.status.value,
                auto_verified=verification.status == ReviewStatus.AUTO_APPROVED,
                title_valid=verification.title_valid,
                content_valid=verification.content_valid,
                character_count=verification.character_count,
                verification_message=verification.error_message,
                title=verification.title,
                excerpt=verification.excerpt,
                image_url=verification.image_url,
            )
            if verification.status == ReviewStatus.AUTO_APPROVED:
                submission.verified_at = datetime.utcnow()
                submission.verified_by = "auto"
            ReviewSubmissionRepository(session).add(submission)

            gate_result = None
            if verification.status == ReviewStatus.AUTO_APPROVED:
                gate_result = self.gate.apply(session, reservation)
                logger.info(
                    "review_auto_approved",
                    reservation_id=reservation.id,
                    submission_id=submission.id,
                )
            else:
                logger.info(
                    "review_queued_for_manual_review",
                    reservation_id=reservation.id,
                    submission_id=submission.id,
                    reason=verification.error_message,
                )

            return SubmissionResult(
                submission=submission,
                verification=verification,
                message=verification_message(verification),
                gate=gate_result,
            )

    def approve(self, submission_id: int, verified_by: str = "admin") -> ReviewGateResult:
        """Approve a submission manually and evaluate review benefits.

        Approving an already approved submission changes nothing.

        Args:
            submission_id: Submission ID
            verified_by: Admin identifier

        Returns:
            Gate result
        """
        with self.db.session() as session:
            submission = ReviewSubmissionRepository(session).get_for_update(submission_id)
            if submission is None:
                raise NotFoundError("ReviewSubmission", submission_id)
            if submission.status == ReviewStatus.REJECTED.value:
                raise InvalidStateError("A rejected review cannot be approved")

            if submission.status != ReviewStatus.APPROVED.value:
                submission.status = ReviewStatus.APPROVED.value
                submission.verified_at = datetime.utcnow()
                submission.verified_by = verified_by
                logger.info("review_approved", submission_id=submission_id, verified_by=verified_by)

            reservation = ReservationRepository(session).get_for_update(submission.reservation_id)
            return self.gate.apply(session, reservation)

    def reject(self, submission_id: int, reason: str, verified_by: str = "admin") -> ReviewSubmission:
        """Reject a submission. Rejection is terminal.

        Raises:
            ValidationError: No reason given
            InvalidStateError: Submission was already approved or rejected
        """
        if not reason or not reason.strip():
            raise ValidationError("A rejection reason is required")

        with self.db.session() as session:
            submission = ReviewSubmissionRepository(session).get_for_update(submission_id)
            if submission is None:
                raise NotFoundError("ReviewSubmission", submission_id)
            if submission.status in (ReviewStatus.APPROVED.value, ReviewStatus.REJECTED.value):
                raise InvalidStateError(f"Review is already {submission.status}")

            submission.status = ReviewStatus.REJECTED.value
            submission.reject_reason = reason.strip()
            submission.verified_at = datetime.utcnow()
            submission.verified_by = verified_by
            logger.info("review_rejected", submission_id=submission_id, verified_by=verified_by)
            return submission

    def add_curated(self, source_url: str, title: str | None = None) -> CuratedReview:
        """Register an admin-curated review (blocks later submissions of the same URL)."""
        if not is_valid_review_url(source_url):
            raise InvalidReviewUrlError("Please enter a valid review URL")
        with self.db.session() as session:
            self.check_duplicate(session, source_url)
            review = CuratedReviewRepository(session).add(source_url.strip(), title)
            logger.info("curated_review_added", review_id=review.id)
            return review

    def list_for_reservation(self, reservation_id: int) -> list[ReviewSubmission]:
        """All submissions of a reservation, newest first."""
        with self.db.session() as session:
            return ReviewSubmissionRepository(session).list_for_reservation(reservation_id)


# Global review service instance
review_service = ReviewService()
