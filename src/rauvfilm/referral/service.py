"""Referral ledger: code issuance, redemption and two-sided credit."""

from dataclasses import dataclass
from datetime import date

from sqlalchemy.orm import Session

from rauvfilm.errors import InvalidStateError, NotFoundError, ReferralCodeNotFoundError, ValidationError
from rauvfilm.logging_config import get_logger
from rauvfilm.pricing.balance import recompute_reservation
from rauvfilm.pricing.policy import DiscountPolicy
from rauvfilm.referral.codes import generate_referral_code, normalize_code, with_suffix
from rauvfilm.security.encryption import get_cipher, mask_name
from rauvfilm.storage.db import Database, db
from rauvfilm.storage.models import Reservation, ReservationStatus
from rauvfilm.storage.repo import BookingRepository, ReferralCodeRepository, ReservationRepository
from rauvfilm.sync.synchronizer import DualRecordSynchronizer

logger = get_logger(__name__)

# Upper bound on collision suffixes tried for one base code
MAX_SUFFIX_ATTEMPTS = 1000


@dataclass
class ReferralCodeCheck:
    """Outcome of a public "is this code usable" lookup."""

    valid: bool
    referrer_id: int | None = None
    referrer_name: str | None = None
    referrer_expired: bool = False
    error: str | None = None


@dataclass
class ReferralApplyResult:
    """Outcome of crediting a referral pair.

    ``applied`` is False (with ``error``) when nothing could be credited;
    this is a soft outcome and never raised.
    """

    applied: bool
    referee_discount: int = 0
    referrer_discount: int = 0
    referrer_credited: bool = False
    referrer_id: int | None = None
    error: str | None = None


class ReferralLedger:
    """Service for referral codes and referral-pair discounts."""

    def __init__(
        self,
        database: Database | None = None,
        policy: DiscountPolicy | None = None,
        synchronizer: DualRecordSynchronizer | None = None,
    ):
        self.db = database or db
        self.policy = policy or DiscountPolicy.from_settings()
        self.synchronizer = synchronizer or DualRecordSynchronizer(self.db, self.policy)
        self.logger = get_logger(__name__)

    def issue_code(self, session: Session, reservation: Reservation) -> str:
        """Assign a unique referral code to a reservation.

        Codes are immutable: a reservation that already has one keeps it.

        Args:
            session: Session of the caller's transaction
            reservation: Reservation being confirmed

        Returns:
            The reservation's referral code
        """
        if reservation.referral_code:
            return reservation.referral_code

        name = get_cipher().decrypt(reservation.author)
        base_code = generate_referral_code(reservation.event_date, name or "")

        codes = ReferralCodeRepository(session)
        bookings = BookingRepository(session)
        for attempt in range(MAX_SUFFIX_ATTEMPTS):
            candidate = with_suffix(base_code, attempt)
            if not codes.exists(candidate) and not bookings.partner_code_exists(candidate):
                break
        else:
            raise InvalidStateError(f"Could not find a free referral code for {base_code}")

        codes.add(candidate, reservation.id)
        reservation.referral_code = candidate

        self.logger.info(
            "referral_code_issued",
            reservation_id=reservation.id,
            code=candidate,
            suffixed=candidate != base_code,
        )
        return candidate

    def _lookup(self, session: Session, code: str, lock: bool = False) -> Reservation | None:
        entry = ReferralCodeRepository(session).get(code)
        if entry is None:
            return None
        reservations = ReservationRepository(session)
        if lock:
            return reservations.get_for_update(entry.reservation_id)
        return reservations.get_by_id(entry.reservation_id)

    def validate_code(self, code: str, today: date | None = None) -> ReferralCodeCheck:
        """Check whether a code can be entered on a new reservation.

        Args:
            code: Code as typed by the customer
            today: Reference date for the referrer's event date

        Returns:
            Check result with the referrer's masked name
        """
        canonical = normalize_code(code)
        if not canonical:
            return ReferralCodeCheck(valid=False, error="Please enter a referral code")

        today = today or date.today()
        with self.db.session() as session:
            referrer = self._lookup(session, canonical)
            if referrer is None:
                return ReferralCodeCheck(valid=False, error="Referral code does not exist")
            if referrer.is_anonymized:
                return ReferralCodeCheck(valid=False, error="Referral code is no longer valid")
            if referrer.status != ReservationStatus.CONFIRMED.value:
                return ReferralCodeCheck(valid=False, error="Referral code belongs to an unconfirmed reservation")

            name = get_cipher().decrypt(referrer.author)
            return ReferralCodeCheck(
                valid=True,
                referrer_id=referrer.id,
                referrer_name=mask_name(name),
                referrer_expired=referrer.event_date < today,
            )

    def redeem(self, session: Session, reservation: Reservation, code: str) -> Reservation:
        """Record that a reservation entered a referral code.

        No discount is applied here; credit happens when the reservation is
        confirmed (see ``apply_referral``).

        Args:
            session: Session of the caller's transaction
            reservation: Referee reservation
            code: Code as entered

        Returns:
            The referrer reservation

        Raises:
            ReferralCodeNotFoundError: Code does not match a confirmed reservation
            ValidationError: Self-referral
            InvalidStateError: Referral credit was already applied
        """
        canonical = normalize_code(code)
        referrer = self._lookup(session, canonical) if canonical else None
        if (
            referrer is None
            or referrer.is_anonymized
            or referrer.status != ReservationStatus.CONFIRMED.value
        ):
            raise ReferralCodeNotFoundError(code)
        if referrer.id == reservation.id:
            raise ValidationError("A reservation cannot redeem its own referral code")
        if reservation.referral_applied:
            raise InvalidStateError("Referral discount has already been applied to this reservation")

        reservation.referred_by = canonical
        reservation.referred_by_reservation_id = referrer.id
        self.logger.info(
            "referral_code_redeemed",
            reservation_id=reservation.id,
            referrer_id=referrer.id,
            code=canonical,
        )
        return referrer

    def apply_referral(self, session: Session, referee: Reservation, today: date) -> ReferralApplyResult:
        """Credit both sides of a referral pair when the referee is confirmed.

        The referee is credited at most once. The referrer is credited only
        together with that first referee credit, and only while the
        referrer's event date has not passed.

        Args:
            session: Session of the caller's transaction
            referee: Reservation being confirmed
            today: Reference date for the referrer's event date

        Returns:
            Apply result (soft failure on ``applied=False``)
        """
        if not referee.referred_by:
            return ReferralApplyResult(applied=False, error="No referral code was entered")

        referrer = self._lookup(session, normalize_code(referee.referred_by), lock=True)
        if referrer is None:
            return self._not_applied(referee, "Referral code no longer exists")
        if referrer.id == referee.id:
            return self._not_applied(referee, "A reservation cannot redeem its own referral code")
        if referrer.status == ReservationStatus.CANCELLED.value:
            return self._not_applied(referee, "Referrer reservation was cancelled")
        if referrer.is_anonymized:
            return self._not_applied(referee, "Referral code is no longer valid")
        if referee.referral_applied:
            return ReferralApplyResult(
                applied=False,
                referrer_id=referrer.id,
                error="Referral discount has already been applied",
            )

        referee.referral_applied = True
        referee.referred_by_reservation_id = referrer.id

        referrer_credited = referrer.event_date >= today
        if referrer_credited:
            referrer.referred_count = (referrer.referred_count or 0) + 1

        recompute_reservation(referee, self.policy)
        recompute_reservation(referrer, self.policy)
        session.flush()

        self.synchronizer.mirror_to_booking(session, referee)
        self.synchronizer.mirror_to_booking(session, referrer)

        self.logger.info(
            "referral_applied",
            referee_id=referee.id,
            referrer_id=referrer.id,
            referrer_credited=referrer_credited,
        )
        return ReferralApplyResult(
            applied=True,
            referee_discount=self.policy.referral_amount,
            referrer_discount=self.policy.referral_amount if referrer_credited else 0,
            referrer_credited=referrer_credited,
            referrer_id=referrer.id,
        )

    def _not_applied(self, referee: Reservation, reason: str) -> ReferralApplyResult:
        self.logger.warning("referral_not_applied", referee_id=referee.id, reason=reason)
        return ReferralApplyResult(applied=False, error=reason)

    def reassign_referral(self, reservation_id: int, code: str | None) -> Reservation:
        """Change or clear the code a reservation redeemed (admin).

        Only allowed while the reservation is still PENDING, since credit
        is applied at confirmation.

        Args:
            reservation_id: Referee reservation ID
            code: New code, or None to clear

        Returns:
            Updated reservation
        """
        with self.db.session() as session:
            reservation = ReservationRepository(session).get_for_update(reservation_id)
            if reservation is None:
                raise NotFoundError("Reservation", reservation_id)
            if reservation.status != ReservationStatus.PENDING.value:
                raise InvalidStateError("Referral can only be changed before confirmation")

            if code is None or not normalize_code(code):
                reservation.referred_by = None
                reservation.referred_by_reservation_id = None
                self.logger.info("referral_cleared", reservation_id=reservation_id)
            else:
                self.redeem(session, reservation, code)

            self.synchronizer.mirror_to_booking(session, reservation)
            return reservation

    def list_referrals(self, code: str) -> list[Reservation]:
        """Reservations that redeemed a given code, newest first."""
        with self.db.session() as session:
            return ReservationRepository(session).list_referred_by(normalize_code(code))


# Global ledger instance
referral_ledger = ReferralLedger()
