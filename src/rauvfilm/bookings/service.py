"""Reservation lifecycle: creation, confirmation, booking promotion, discounts."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from sqlalchemy.orm import Session

from rauvfilm.errors import InvalidStateError, NotFoundError, ValidationError
from rauvfilm.logging_config import get_logger
from rauvfilm.pricing.balance import BalanceBreakdown, breakdown_for, recompute_reservation
from rauvfilm.pricing.policy import DiscountPolicy, ProductTier
from rauvfilm.referral.service import ReferralApplyResult, ReferralLedger
from rauvfilm.security.encryption import get_cipher, normalize_phone
from rauvfilm.storage.db import Database, db
from rauvfilm.storage.models import Booking, BookingStatus, Reservation, ReservationStatus
from rauvfilm.storage.repo import BookingRepository, ReservationRepository
from rauvfilm.sync.synchronizer import DualRecordSynchronizer

logger = get_logger(__name__)

MAX_ADMIN_DISCOUNT = 10_000_000

# Booking fields an admin may edit directly
EDITABLE_BOOKING_FIELDS = frozenset({
    "customer_name",
    "customer_phone",
    "event_date",
    "venue_name",
    "status",
    "list_price",
    "travel_fee",
    "event_discount",
    "new_year_discount",
    "special_discount",
    "admin_note",
    "video_url",
    "contract_url",
})


@dataclass
class ConfirmationResult:
    """Outcome of confirming a reservation."""

    reservation: Reservation
    referral_code: str
    breakdown: BalanceBreakdown
    referral: ReferralApplyResult | None = None
    booking: Booking | None = None


def parse_date(value: date | str) -> date:
    """Accept a date or an ISO ``YYYY-MM-DD`` string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError as e:
        raise ValidationError(f"Invalid date: {value}") from e


def _check_amount(amount: int, label: str) -> int:
    if amount is None or amount < 0 or amount > MAX_ADMIN_DISCOUNT:
        raise ValidationError(f"{label} must be between 0 and {MAX_ADMIN_DISCOUNT:,}")
    return int(amount)


class BookingService:
    """Service for the reservation/booking lifecycle."""

    def __init__(
        self,
        database: Database | None = None,
        policy: DiscountPolicy | None = None,
        ledger: ReferralLedger | None = None,
        synchronizer: DualRecordSynchronizer | None = None,
    ):
        self.db = database or db
        self.policy = policy or DiscountPolicy.from_settings()
        self.synchronizer = synchronizer or DualRecordSynchronizer(self.db, self.policy)
        self.ledger = ledger or ReferralLedger(self.db, self.policy, self.synchronizer)

    def _get_for_update(self, session: Session, reservation_id: int) -> Reservation:
        reservation = ReservationRepository(session).get_for_update(reservation_id)
        if reservation is None:
            raise NotFoundError("Reservation", reservation_id)
        return reservation

    def create_reservation(
        self,
        *,
        author: str,
        event_date: date | str,
        product_tier: ProductTier | str,
        bride_name: str | None = None,
        bride_phone: str | None = None,
        groom_name: str | None = None,
        groom_phone: str | None = None,
        venue_name: str | None = None,
        options: dict[str, bool] | None = None,
        total_amount: int | None = None,
        travel_fee: int = 0,
        new_year_eligible: bool = False,
        event_discount: int = 0,
        referred_by: str | None = None,
    ) -> Reservation:
        """Create a PENDING reservation.

        Args:
            author: Contract holder name
            event_date: Wedding date
            product_tier: Tier enum, value or Korean product name
            options: Selected shooting options
            total_amount: List price (priced from tier and options when omitted)
            referred_by: Referral code entered by the customer

        Returns:
            Created reservation

        Raises:
            ReferralCodeNotFoundError: Entered code is not usable
        """
        if not author or not author.strip():
            raise ValidationError("Contract holder name is required")
        tier = product_tier if isinstance(product_tier, ProductTier) else self._tier(product_tier)
        list_price = total_amount if total_amount is not None else self.policy.list_price_for(tier, options)

        cipher = get_cipher()
        with self.db.session() as session:
            reservation = Reservation(
                author=cipher.encrypt(author.strip()),
                bride_name=cipher.encrypt(bride_name),
                bride_phone=cipher.encrypt(normalize_phone(bride_phone)),
                groom_name=cipher.encrypt(groom_name),
                groom_phone=cipher.encrypt(normalize_phone(groom_phone)),
                event_date=parse_date(event_date),
                venue_name=venue_name,
                product_tier=tier.value,
                options_json=options or None,
                new_year_eligible=new_year_eligible,
                total_amount=list_price,
                travel_fee=max(0, travel_fee),
                deposit_amount=self.policy.deposit_amount,
                event_discount=_check_amount(event_discount, "Event discount"),
                new_year_discount=self.policy.new_year_discount_for(tier, new_year_eligible),
                status=ReservationStatus.PENDING.value,
            )
            ReservationRepository(session).add(reservation)

            if referred_by and referred_by.strip():
                self.ledger.redeem(session, reservation, referred_by)

            recompute_reservation(reservation, self.policy)
            return reservation

    @staticmethod
    def _tier(label: str) -> ProductTier:
        try:
            return ProductTier.from_label(label)
        except ValueError as e:
            raise ValidationError(str(e)) from e

    def confirm(
        self,
        reservation_id: int,
        today: date | None = None,
        create_booking: bool = False,
    ) -> ConfirmationResult:
        """Confirm a PENDING reservation.

        Issues its referral code, credits the referral pair when a code was
        redeemed, and optionally promotes it to a booking. Everything is one
        transaction.

        Args:
            reservation_id: Reservation ID
            today: Reference date for referrer expiry (defaults to today)
            create_booking: Also create the internal booking record

        Returns:
            Confirmation result
        """
        today = today or date.today()
        with self.db.session() as session:
            reservation = self._get_for_update(session, reservation_id)
            if reservation.status != ReservationStatus.PENDING.value:
                raise InvalidStateError("Only PENDING reservations can be confirmed")

            reservation.status = ReservationStatus.CONFIRMED.value
            reservation.confirmed_at = datetime.utcnow()
            code = self.ledger.issue_code(session, reservation)

            referral = None
            if reservation.referred_by:
                referral = self.ledger.apply_referral(session, reservation, today)

            breakdown = recompute_reservation(reservation, self.policy)
            session.flush()

            booking = None
            if create_booking:
                booking = self._promote(session, reservation)
            else:
                self.synchronizer.mirror_to_booking(session, reservation)

            logger.info(
                "reservation_confirmed",
                reservation_id=reservation.id,
                referral_code=code,
                referral_applied=referral.applied if referral else None,
            )
            return ConfirmationResult(
                reservation=reservation,
                referral_code=code,
                breakdown=breakdown,
                referral=referral,
                booking=booking,
            )

    def _promote(self, session: Session, reservation: Reservation) -> Booking:
        bookings = BookingRepository(session)
        existing = bookings.get_by_reservation(reservation.id)
        if existing is not None:
            return existing

        booking = Booking(
            reservation_id=reservation.id,
            customer_name=reservation.author,
            event_date=reservation.event_date,
            product_tier=reservation.product_tier,
            list_price=reservation.total_amount,
        )
        self.synchronizer.copy_to_booking(session, reservation, booking)
        return bookings.add(booking)

    def promote_to_booking(self, reservation_id: int) -> Booking:
        """Create the internal booking for a confirmed reservation.

        Returns the existing booking if there already is one.
        """
        with self.db.session() as session:
            reservation = self._get_for_update(session, reservation_id)
            if reservation.status in (ReservationStatus.PENDING.value, ReservationStatus.CANCELLED.value):
                raise InvalidStateError(f"Cannot create a booking for a {reservation.status} reservation")
            recompute_reservation(reservation, self.policy)
            return self._promote(session, reservation)

    def _set_status(self, reservation_id: int, status: ReservationStatus, **booking_fields: Any) -> Reservation:
        with self.db.session() as session:
            reservation = self._get_for_update(session, reservation_id)
            if reservation.status == ReservationStatus.CANCELLED.value:
                raise InvalidStateError("Reservation is cancelled")

            reservation.status = status.value
            recompute_reservation(reservation, self.policy)
            session.flush()

            booking = BookingRepository(session).get_by_reservation(reservation.id)
            if booking is not None:
                for name, value in booking_fields.items():
                    if value is not None:
                        setattr(booking, name, value)
            self.synchronizer.mirror_to_booking(session, reservation)

            logger.info("reservation_status_changed", reservation_id=reservation_id, status=status.value)
            return reservation

    def cancel(self, reservation_id: int) -> Reservation:
        """Cancel a reservation.

        Credits already given to a referral pair stay in place; the code of
        a cancelled reservation can no longer be redeemed or credited.
        """
        return self._set_status(reservation_id, ReservationStatus.CANCELLED)

    def mark_delivered(self, reservation_id: int, video_url: str | None = None) -> Reservation:
        """Mark the final video as delivered."""
        return self._set_status(reservation_id, ReservationStatus.DELIVERED, video_url=video_url)

    def mark_completed(self, reservation_id: int) -> Reservation:
        return self._set_status(reservation_id, ReservationStatus.COMPLETED)

    def _set_component(self, reservation_id: int, field: str, amount: int) -> BalanceBreakdown:
        amount = _check_amount(amount, field.replace("_", " ").capitalize())
        with self.db.session() as session:
            reservation = self._get_for_update(session, reservation_id)
            setattr(reservation, field, amount)
            breakdown = recompute_reservation(reservation, self.policy)
            session.flush()
            self.synchronizer.mirror_to_booking(session, reservation)
            logger.info("discount_updated", reservation_id=reservation_id, field=field, amount=amount)
            return breakdown

    def set_event_discount(self, reservation_id: int, amount: int) -> BalanceBreakdown:
        """Set the event/seasonal discount and recompute the balance."""
        return self._set_component(reservation_id, "event_discount", amount)

    def set_special_discount(self, reservation_id: int, amount: int) -> BalanceBreakdown:
        """Set the admin special discount and recompute the balance."""
        return self._set_component(reservation_id, "special_discount", amount)

    def update_booking(self, booking_id: int, changes: dict[str, Any]) -> Booking:
        """Apply an admin edit to a booking and carry it back to the reservation.

        Args:
            booking_id: Booking ID
            changes: Field -> new value (see ``EDITABLE_BOOKING_FIELDS``)

        Returns:
            Updated booking
        """
        unknown = set(changes) - EDITABLE_BOOKING_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

        cipher = get_cipher()
        with self.db.session() as session:
            booking = BookingRepository(session).get_for_update(booking_id)
            if booking is None:
                raise NotFoundError("Booking", booking_id)

            for name, value in changes.items():
                if name == "customer_name":
                    if not value or not str(value).strip():
                        raise ValidationError("Customer name cannot be empty")
                    value = cipher.encrypt(str(value).strip())
                elif name == "customer_phone":
                    value = cipher.encrypt(normalize_phone(value))
                elif name == "event_date":
                    value = parse_date(value)
                elif name == "status":
                    try:
                        value = BookingStatus(value).value
                    except ValueError as e:
                        raise ValidationError(f"Unknown booking status: {value}") from e
                elif name in ("event_discount", "new_year_discount", "special_discount"):
                    value = _check_amount(value, name)
                elif name in ("list_price", "travel_fee"):
                    if value is None or value < 0:
                        raise ValidationError(f"{name} must not be negative")
                setattr(booking, name, value)
            session.flush()

            self.synchronizer.mirror_to_reservation(session, booking, changes)
            reservation = ReservationRepository(session).get_for_update(booking.reservation_id)
            if reservation is not None:
                recompute_reservation(reservation, self.policy)
                session.flush()
                self.synchronizer.mirror_to_booking(session, reservation)

            logger.info("booking_updated", booking_id=booking_id, fields=sorted(changes))
            return booking

    def get_balance(self, reservation_id: int) -> BalanceBreakdown:
        """Current balance breakdown of a reservation."""
        with self.db.session() as session:
            reservation = ReservationRepository(session).get_by_id(reservation_id)
            if reservation is None:
                raise NotFoundError("Reservation", reservation_id)
            return breakdown_for(reservation, self.policy)

    def get_reservation(self, reservation_id: int) -> Reservation:
        with self.db.session() as session:
            reservation = ReservationRepository(session).get_by_id(reservation_id)
            if reservation is None:
                raise NotFoundError("Reservation", reservation_id)
            return reservation


# Global booking service instance
booking_service = BookingService()
