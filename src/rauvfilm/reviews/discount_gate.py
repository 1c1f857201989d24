"""Review discount gate: grants tiered review benefits exactly once."""

from dataclasses import dataclass

from sqlalchemy.orm import Session

from rauvfilm.logging_config import get_logger
from rauvfilm.pricing.balance import recompute_reservation
from rauvfilm.pricing.policy import DiscountPolicy, ProductTier
from rauvfilm.storage.models import Reservation
from rauvfilm.storage.repo import ReviewSubmissionRepository
from rauvfilm.sync.synchronizer import DualRecordSynchronizer

logger = get_logger(__name__)


@dataclass
class ReviewGateResult:
    """Outcome of evaluating a reservation's review benefits."""

    approved_count: int
    granted: bool
    review_discount: int
    raw_footage_unlocked: bool
    reason: str | None = None


class ReviewDiscountGate:
    """Applies the review tier table to a reservation."""

    def __init__(
        self,
        policy: DiscountPolicy | None = None,
        synchronizer: DualRecordSynchronizer | None = None,
    ):
        self.policy = policy or DiscountPolicy.from_settings()
        self.synchronizer = synchronizer or DualRecordSynchronizer(policy=self.policy)

    def apply(self, session: Session, reservation: Reservation) -> ReviewGateResult:
        """Re-evaluate review benefits after a review was approved.

        The approved count is always recounted from submissions. The
        discount is granted only while ``review_discount`` is still zero, so
        calling this repeatedly never stacks it.

        Args:
            session: Session of the caller's transaction
            reservation: Reservation whose review was approved

        Returns:
            Gate result
        """
        session.flush()
        approved_count = ReviewSubmissionRepository(session).count_approved(reservation.id)
        rule = self.policy.review_rule(ProductTier(reservation.product_tier))

        if approved_count < rule.min_approved:
            return ReviewGateResult(
                approved_count=approved_count,
                granted=False,
                review_discount=reservation.review_discount or 0,
                raw_footage_unlocked=reservation.raw_footage_unlocked,
                reason=f"{rule.min_approved - approved_count} more approved review(s) needed",
            )

        changed = False
        if rule.unlocks_raw_footage and not reservation.raw_footage_unlocked:
            reservation.raw_footage_unlocked = True
            changed = True

        reason = None
        if rule.discount_units > 0:
            if (reservation.review_discount or 0) == 0:
                reservation.review_credit_count = rule.discount_units
                changed = True
            else:
                reason = "Review discount already applied"

        if changed:
            recompute_reservation(reservation, self.policy)
            session.flush()
            self.synchronizer.mirror_to_booking(session, reservation)
            logger.info(
                "review_benefit_granted",
                reservation_id=reservation.id,
                approved_count=approved_count,
                review_discount=reservation.review_discount,
                raw_footage_unlocked=reservation.raw_footage_unlocked,
            )

        return ReviewGateResult(
            approved_count=approved_count,
            granted=changed,
            review_discount=reservation.review_discount or 0,
            raw_footage_unlocked=reservation.raw_footage_unlocked,
            reason=reason,
        )

    def rederive(self, session: Session, reservation: Reservation) -> ReviewGateResult:
        """Rebuild review benefits from the reservation's current tier rule.

        Used after a product tier change: the discount units and the raw
        footage unlock are set to what the new tier grants for the approved
        count, replacing whatever the previous tier granted. The caller
        recomputes and mirrors.
        """
        session.flush()
        approved_count = ReviewSubmissionRepository(session).count_approved(reservation.id)
        rule = self.policy.review_rule(ProductTier(reservation.product_tier))
        earned = approved_count >= rule.min_approved

        credit_count = rule.discount_units if earned else 0
        unlocked = rule.unlocks_raw_footage and earned
        changed = (
            (reservation.review_credit_count or 0) != credit_count
            or reservation.raw_footage_unlocked != unlocked
        )
        reservation.review_credit_count = credit_count
        reservation.raw_footage_unlocked = unlocked

        if changed:
            logger.info(
                "review_benefit_rederived",
                reservation_id=reservation.id,
                product_tier=reservation.product_tier,
                approved_count=approved_count,
                review_credit_count=credit_count,
                raw_footage_unlocked=unlocked,
            )

        return ReviewGateResult(
            approved_count=approved_count,
            granted=changed,
            review_discount=credit_count * self.policy.review_amount,
            raw_footage_unlocked=unlocked,
            reason=None if earned else f"{rule.min_approved - approved_count} more approved review(s) needed",
        )
