"""Repository layer for data access."""

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from rauvfilm.logging_config import get_logger
from rauvfilm.storage.models import (
    APPROVED_REVIEW_STATUSES,
    ACTIVE_REVIEW_STATUSES,
    Booking,
    CuratedReview,
    PendingChange,
    ReferralCode,
    Reservation,
    ReviewStatus,
    ReviewSubmission,
)

logger = get_logger(__name__)


class ReservationRepository:
    """Repository for Reservation entities."""

    def __init__(self, session: Session):
        self.session = session

    def add(self, reservation: Reservation) -> Reservation:
        """Persist a new reservation and assign its ID."""
        self.session.add(reservation)
        self.session.flush()
        self.session.refresh(reservation)
        logger.info("reservation_created", reservation_id=reservation.id)
        return reservation

    def get_by_id(self, reservation_id: int) -> Reservation | None:
        """Get reservation by ID."""
        return self.session.get(Reservation, reservation_id)

    def get_for_update(self, reservation_id: int) -> Reservation | None:
        """Get reservation by ID with a row lock for read-then-write."""
        stmt = select(Reservation).where(Reservation.id == reservation_id).with_for_update()
        return self.session.scalars(stmt).first()

    def list_referred_by(self, code: str) -> list[Reservation]:
        """Reservations that redeemed a given (canonical) code."""
        stmt = (
            select(Reservation)
            .where(Reservation.referred_by == code)
            .order_by(Reservation.created_at.desc())
        )
        return list(self.session.scalars(stmt))

    def list_all(self) -> list[Reservation]:
        """List all reservations, oldest first."""
        return list(self.session.scalars(select(Reservation).order_by(Reservation.id)))


class BookingRepository:
    """Repository for Booking entities."""

    def __init__(self, session: Session):
        self.session = session

    def add(self, booking: Booking) -> Booking:
        self.session.add(booking)
        self.session.flush()
        self.session.refresh(booking)
        logger.info("booking_created", booking_id=booking.id, reservation_id=booking.reservation_id)
        return booking

    def get_by_id(self, booking_id: int) -> Booking | None:
        return self.session.get(Booking, booking_id)

    def get_for_update(self, booking_id: int) -> Booking | None:
        stmt = select(Booking).where(Booking.id == booking_id).with_for_update()
        return self.session.scalars(stmt).first()

    def get_by_reservation(self, reservation_id: int) -> Booking | None:
        stmt = select(Booking).where(Booking.reservation_id == reservation_id)
        return self.session.scalars(stmt).first()

    def partner_code_exists(self, code: str) -> bool:
        """Check whether any booking already carries this partner code."""
        stmt = select(Booking.id).where(Booking.partner_code == code)
        return self.session.scalars(stmt).first() is not None


class ReferralCodeRepository:
    """Repository for the canonical referral code index."""

    def __init__(self, session: Session):
        self.session = session

    def exists(self, code: str) -> bool:
        stmt = select(ReferralCode.id).where(ReferralCode.code == code)
        return self.session.scalars(stmt).first() is not None

    def get(self, code: str) -> ReferralCode | None:
        stmt = select(ReferralCode).where(ReferralCode.code == code)
        return self.session.scalars(stmt).first()

    def add(self, code: str, reservation_id: int) -> ReferralCode:
        entry = ReferralCode(code=code, reservation_id=reservation_id)
        self.session.add(entry)
        self.session.flush()
        return entry


class ReviewSubmissionRepository:
    """Repository for ReviewSubmission entities."""

    def __init__(self, session: Session):
        self.session = session

    def add(self, submission: ReviewSubmission) -> ReviewSubmission:
        self.session.add(submission)
        self.session.flush()
        self.session.refresh(submission)
        return submission

    def get_by_id(self, submission_id: int) -> ReviewSubmission | None:
        return self.session.get(ReviewSubmission, submission_id)

    def get_for_update(self, submission_id: int) -> ReviewSubmission | None:
        stmt = select(ReviewSubmission).where(ReviewSubmission.id == submission_id).with_for_update()
        return self.session.scalars(stmt).first()

    def list_for_reservation(self, reservation_id: int) -> list[ReviewSubmission]:
        stmt = (
            select(ReviewSubmission)
            .where(ReviewSubmission.reservation_id == reservation_id)
            .order_by(ReviewSubmission.created_at.desc(), ReviewSubmission.id.desc())
        )
        return list(self.session.scalars(stmt))

    def find_active_by_normalized_url(self, normalized_url: str) -> ReviewSubmission | None:
        """First non-rejected submission across the whole system with this URL."""
        stmt = select(ReviewSubmission).where(
            ReviewSubmission.normalized_url == normalized_url,
            ReviewSubmission.status != ReviewStatus.REJECTED.value,
        )
        return self.session.scalars(stmt).first()

    def count_approved(self, reservation_id: int) -> int:
        """Count AUTO_APPROVED and APPROVED submissions of a reservation."""
        stmt = select(func.count(ReviewSubmission.id)).where(
            ReviewSubmission.reservation_id == reservation_id,
            ReviewSubmission.status.in_(APPROVED_REVIEW_STATUSES),
        )
        return self.session.scalar(stmt) or 0

    def count_active(
        self,
        reservation_id: int,
        review_type: str,
        platform: str | None = None,
    ) -> int:
        """Count submissions still in play (not rejected) for limit checks."""
        filters: list[Any] = [
            ReviewSubmission.reservation_id == reservation_id,
            ReviewSubmission.review_type == review_type,
            ReviewSubmission.status.in_(ACTIVE_REVIEW_STATUSES),
        ]
        if platform is not None:
            filters.append(ReviewSubmission.platform == platform)
        stmt = select(func.count(ReviewSubmission.id)).where(*filters)
        return self.session.scalar(stmt) or 0


class CuratedReviewRepository:
    """Repository for admin-curated reviews."""

    def __init__(self, session: Session):
        self.session = session

    def add(self, source_url: str, title: str | None = None) -> CuratedReview:
        review = CuratedReview(source_url=source_url, title=title)
        self.session.add(review)
        self.session.flush()
        self.session.refresh(review)
        return review

    def list_all(self) -> list[CuratedReview]:
        return list(self.session.scalars(select(CuratedReview)))


class PendingChangeRepository:
    """Repository for customer change requests."""

    def __init__(self, session: Session):
        self.session = session

    def add(self, change: PendingChange) -> PendingChange:
        self.session.add(change)
        self.session.flush()
        self.session.refresh(change)
        return change

    def get_for_update(self, change_id: int) -> PendingChange | None:
        stmt = select(PendingChange).where(PendingChange.id == change_id).with_for_update()
        return self.session.scalars(stmt).first()
