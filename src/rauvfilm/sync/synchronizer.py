"""Dual-record synchronization between Reservation and Booking.

The Reservation owns the discount components; the Booking is a mirrored
operational view. Mirrored writes run inside a SAVEPOINT so a failure there
is logged and never undoes the primary write.
"""

from dataclasses import dataclass
from typing import Any, Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rauvfilm.logging_config import get_logger
from rauvfilm.pricing.balance import breakdown_for, recompute_reservation
from rauvfilm.pricing.policy import DiscountPolicy
from rauvfilm.storage.db import Database, db
from rauvfilm.storage.models import Booking, BookingStatus, Reservation, ReservationStatus
from rauvfilm.storage.repo import BookingRepository, ReservationRepository

logger = get_logger(__name__)

RESERVATION_TO_BOOKING_STATUS: dict[str, str] = {
    ReservationStatus.PENDING.value: BookingStatus.PENDING.value,
    ReservationStatus.CONFIRMED.value: BookingStatus.CONFIRMED.value,
    ReservationStatus.CANCELLED.value: BookingStatus.CANCELLED.value,
    ReservationStatus.COMPLETED.value: BookingStatus.DEPOSIT_COMPLETED.value,
    ReservationStatus.DELIVERED.value: BookingStatus.DELIVERED.value,
}

# Fields copied verbatim from reservation to booking
MIRRORED_FIELDS = (
    "event_date",
    "venue_name",
    "product_tier",
    "travel_fee",
    "deposit_amount",
    "event_discount",
    "new_year_discount",
    "special_discount",
    "referral_discount",
    "review_discount",
    "discount_amount",
    "final_balance",
    "referred_count",
    "referred_by",
    "raw_footage_unlocked",
    "is_anonymized",
)

# Booking field -> reservation field for admin edits carried back
BOOKING_INPUT_FIELDS: dict[str, str] = {
    "customer_name": "author",
    "event_date": "event_date",
    "venue_name": "venue_name",
    "list_price": "total_amount",
    "travel_fee": "travel_fee",
    "event_discount": "event_discount",
    "new_year_discount": "new_year_discount",
    "special_discount": "special_discount",
}


def booking_status_for(reservation_status: str, current: str | None = None) -> str:
    """Map a reservation status onto the booking status set.

    A CONFIRMED reservation does not downgrade a booking that has already
    moved on to DEPOSIT_COMPLETED.
    """
    if (
        reservation_status == ReservationStatus.CONFIRMED.value
        and current == BookingStatus.DEPOSIT_COMPLETED.value
    ):
        return current
    return RESERVATION_TO_BOOKING_STATUS.get(reservation_status, BookingStatus.PENDING.value)


def reservation_status_for(booking_status: str, current: str | None = None) -> str:
    """Map a booking status back onto the reservation status set.

    DEPOSIT_COMPLETED is the mirror of a COMPLETED reservation, so it keeps
    a reservation that is already COMPLETED.
    """
    if (
        booking_status == BookingStatus.DEPOSIT_COMPLETED.value
        and current == ReservationStatus.COMPLETED.value
    ):
        return current
    if booking_status == BookingStatus.CANCELLED.value:
        return ReservationStatus.CANCELLED.value
    if booking_status == BookingStatus.DELIVERED.value:
        return ReservationStatus.DELIVERED.value
    if booking_status == BookingStatus.PENDING.value:
        return ReservationStatus.PENDING.value
    return ReservationStatus.CONFIRMED.value


@dataclass
class SyncDrift:
    """A field where a stored value differs from its recomputed value."""

    reservation_id: int
    booking_id: int | None
    field: str
    expected: Any
    actual: Any


class DualRecordSynchronizer:
    """Keeps a reservation and its booking twin consistent."""

    def __init__(self, database: Database | None = None, policy: DiscountPolicy | None = None):
        self.db = database or db
        self.policy = policy or DiscountPolicy.from_settings()

    def mirror_to_booking(self, session: Session, reservation: Reservation) -> bool:
        """Copy a reservation's discount and status state onto its booking.

        Args:
            session: Session of the caller's transaction
            reservation: Freshly recomputed reservation

        Returns:
            True if mirrored (or there is no booking), False if the write failed
        """
        if reservation.id is None:
            return True
        booking = BookingRepository(session).get_by_reservation(reservation.id)
        if booking is None:
            return True

        try:
            with session.begin_nested():
                self.copy_to_booking(session, reservation, booking)
                session.flush()
        except SQLAlchemyError as e:
            logger.error(
                "booking_sync_failed",
                reservation_id=reservation.id,
                booking_id=booking.id,
                error=str(e),
            )
            return False

        logger.debug("booking_synced", reservation_id=reservation.id, booking_id=booking.id)
        return True

    def mirror_to_reservation(
        self,
        session: Session,
        booking: Booking,
        fields: Iterable[str] | None = None,
    ) -> bool:
        """Copy admin edits on a booking back onto its reservation.

        Only inputs travel in this direction (status, identity, event data,
        price and admin-set discount components). Derived fields are
        recomputed on the reservation afterwards by the caller.

        Args:
            session: Session of the caller's transaction
            booking: Edited booking
            fields: Booking fields the admin changed; ``None`` copies every
                input field. Status is only written back when edited.

        Returns:
            True if mirrored, False if the write failed
        """
        reservation = booking.reservation or ReservationRepository(session).get_by_id(
            booking.reservation_id
        )
        if reservation is None:
            return True

        edited = set(fields) if fields is not None else {*BOOKING_INPUT_FIELDS, "status", "customer_phone"}
        try:
            with session.begin_nested():
                if "status" in edited:
                    reservation.status = reservation_status_for(booking.status, reservation.status)
                if "customer_phone" in edited:
                    if reservation.bride_phone or not reservation.groom_phone:
                        reservation.bride_phone = booking.customer_phone
                    else:
                        reservation.groom_phone = booking.customer_phone
                for booking_field, reservation_field in BOOKING_INPUT_FIELDS.items():
                    if booking_field in edited:
                        setattr(reservation, reservation_field, getattr(booking, booking_field))
                session.flush()
        except SQLAlchemyError as e:
            logger.error(
                "reservation_sync_failed",
                reservation_id=booking.reservation_id,
                booking_id=booking.id,
                error=str(e),
            )
            return False

        logger.debug("reservation_synced", reservation_id=reservation.id, booking_id=booking.id)
        return True

    def copy_to_booking(self, session: Session, reservation: Reservation, booking: Booking) -> None:
        """Write the reservation's mirrored state onto a booking (no flush)."""
        for name in MIRRORED_FIELDS:
            setattr(booking, name, getattr(reservation, name))

        booking.list_price = reservation.total_amount
        booking.status = booking_status_for(reservation.status, booking.status)
        booking.customer_name = reservation.author
        booking.customer_phone = reservation.bride_phone or reservation.groom_phone
        booking.partner_code = reservation.referral_code

        referred_by_booking_id = None
        if reservation.referred_by_reservation_id is not None:
            referrer_booking = BookingRepository(session).get_by_reservation(
                reservation.referred_by_reservation_id
            )
            if referrer_booking is not None:
                referred_by_booking_id = referrer_booking.id
        booking.referred_by_booking_id = referred_by_booking_id

    def drift_for(self, reservation: Reservation, booking: Booking | None) -> list[SyncDrift]:
        """Compare stored values with what the components say they should be."""
        breakdown = breakdown_for(reservation, self.policy)
        booking_id = booking.id if booking else None
        drifts = []

        expected = {
            "referral_discount": breakdown.referral_discount,
            "review_discount": breakdown.review_discount,
            "discount_amount": breakdown.total_discount,
            "final_balance": breakdown.final_balance,
        }
        for name, value in expected.items():
            actual = getattr(reservation, name)
            if actual != value:
                drifts.append(SyncDrift(reservation.id, booking_id, f"reservation.{name}", value, actual))

        if booking is None:
            return drifts

        booking_expected = dict(expected)
        for name in ("event_discount", "new_year_discount", "special_discount", "referred_count"):
            booking_expected[name] = getattr(reservation, name)
        booking_expected["list_price"] = reservation.total_amount
        booking_expected["partner_code"] = reservation.referral_code
        booking_expected["status"] = booking_status_for(reservation.status, booking.status)

        for name, value in booking_expected.items():
            actual = getattr(booking, name)
            if actual != value:
                drifts.append(SyncDrift(reservation.id, booking_id, f"booking.{name}", value, actual))
        return drifts

    def reconcile(self, repair: bool = False) -> list[SyncDrift]:
        """Detect (and optionally repair) drift across all reservations.

        Args:
            repair: Recompute reservations and re-mirror bookings that drifted

        Returns:
            Every drift found before repair
        """
        found: list[SyncDrift] = []
        with self.db.session() as session:
            bookings = BookingRepository(session)
            for reservation in ReservationRepository(session).list_all():
                booking = bookings.get_by_reservation(reservation.id)
                drifts = self.drift_for(reservation, booking)
                if not drifts:
                    continue
                found.extend(drifts)
                if repair:
                    recompute_reservation(reservation, self.policy)
                    session.flush()
                    self.mirror_to_booking(session, reservation)

        logger.info("reconciliation_completed", drift_count=len(found), repaired=repair)
        return found


# Global synchronizer instance
dual_record_sync = DualRecordSynchronizer()
