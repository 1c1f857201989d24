from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from conftest import TODAY
from rauvfilm.errors import ValidationError
from rauvfilm.security.encryption import get_cipher
from rauvfilm.storage.models import BookingStatus, ReservationStatus
from rauvfilm.storage.repo import BookingRepository, ReservationRepository
from rauvfilm.sync.synchronizer import booking_status_for, reservation_status_for


def load_pair(database, reservation_id):
    """Reservation and booking as currently stored."""
    with database.session() as session:
        reservation = ReservationRepository(session).get_by_id(reservation_id)
        booking = BookingRepository(session).get_by_reservation(reservation_id)
        return reservation, booking


# ==================== STATUS MAPPING ====================


def test_booking_status_mapping():
    assert booking_status_for("COMPLETED") == BookingStatus.DEPOSIT_COMPLETED.value
    assert booking_status_for("CONFIRMED") == BookingStatus.CONFIRMED.value
    assert booking_status_for("CONFIRMED", "DEPOSIT_COMPLETED") == BookingStatus.DEPOSIT_COMPLETED.value
    assert booking_status_for("CANCELLED", "DEPOSIT_COMPLETED") == BookingStatus.CANCELLED.value


def test_reservation_status_mapping():
    assert reservation_status_for("DEPOSIT_COMPLETED") == ReservationStatus.CONFIRMED.value
    assert reservation_status_for("CANCELLED") == ReservationStatus.CANCELLED.value
    assert reservation_status_for("DELIVERED") == ReservationStatus.DELIVERED.value
    assert reservation_status_for("PENDING") == ReservationStatus.PENDING.value
    assert reservation_status_for("DEPOSIT_COMPLETED", "COMPLETED") == ReservationStatus.COMPLETED.value
    assert reservation_status_for("CANCELLED", "COMPLETED") == ReservationStatus.CANCELLED.value


# ==================== MIRRORING ====================


def test_promoted_booking_mirrors_reservation(database, make_reservation):
    reservation = make_reservation(confirm=True, create_booking=True, bride_phone="010-1234-5678")

    reservation, booking = load_pair(database, reservation.id)

    assert booking.status == BookingStatus.CONFIRMED.value
    assert booking.partner_code == reservation.referral_code
    assert booking.list_price == reservation.total_amount
    assert booking.final_balance == reservation.final_balance
    assert booking.customer_name == reservation.author
    assert get_cipher().decrypt(booking.customer_phone) == "01012345678"


def test_referee_booking_links_referrer_booking(database, bookings, make_reservation):
    referrer = make_reservation(confirm=True, create_booking=True)
    referee = make_reservation(author="김철수", referred_by=referrer.referral_code)
    bookings.confirm(referee.id, today=TODAY, create_booking=True)

    _, referrer_booking = load_pair(database, referrer.id)
    _, referee_booking = load_pair(database, referee.id)

    assert referee_booking.referred_by_booking_id == referrer_booking.id
    assert referrer_booking.referred_count == 1
    assert referrer_booking.referral_discount == 10_000
    assert referee_booking.referral_discount == 10_000


def test_discount_change_mirrored(database, bookings, make_reservation):
    reservation = make_reservation(confirm=True, create_booking=True)

    bookings.set_special_discount(reservation.id, 30_000)

    reservation, booking = load_pair(database, reservation.id)
    assert booking.special_discount == 30_000
    assert booking.final_balance == reservation.final_balance == 470_000


def test_booking_edit_flows_back_to_reservation(database, bookings, make_reservation):
    reservation = make_reservation(confirm=True, create_booking=True)
    _, booking = load_pair(database, reservation.id)

    bookings.update_booking(
        booking.id,
        {"special_discount": 50_000, "event_date": "2026-06-20", "venue_name": "Grand Hall"},
    )

    reservation, booking = load_pair(database, reservation.id)
    assert reservation.special_discount == 50_000
    assert reservation.event_date == date(2026, 6, 20)
    assert reservation.venue_name == "Grand Hall"
    assert reservation.final_balance == 450_000
    assert booking.final_balance == 450_000


def test_booking_cancel_flows_back(database, bookings, make_reservation):
    reservation = make_reservation(confirm=True, create_booking=True)
    _, booking = load_pair(database, reservation.id)

    bookings.update_booking(booking.id, {"status": "CANCELLED"})

    reservation, booking = load_pair(database, reservation.id)
    assert reservation.status == ReservationStatus.CANCELLED.value
    assert booking.status == BookingStatus.CANCELLED.value


def test_booking_edit_keeps_completed_status(database, bookings, make_reservation):
    reservation = make_reservation(confirm=True, create_booking=True)
    bookings.mark_completed(reservation.id)
    _, booking = load_pair(database, reservation.id)
    assert booking.status == BookingStatus.DEPOSIT_COMPLETED.value

    bookings.update_booking(booking.id, {"venue_name": "New Hall"})

    reservation, booking = load_pair(database, reservation.id)
    assert reservation.status == ReservationStatus.COMPLETED.value
    assert reservation.venue_name == "New Hall"
    assert booking.status == BookingStatus.DEPOSIT_COMPLETED.value


def test_booking_edit_keeps_delivered_status(database, bookings, make_reservation):
    reservation = make_reservation(confirm=True, create_booking=True)
    bookings.mark_delivered(reservation.id, video_url="https://vimeo.com/123")
    _, booking = load_pair(database, reservation.id)

    bookings.update_booking(booking.id, {"special_discount": 10_000})

    reservation, booking = load_pair(database, reservation.id)
    assert reservation.status == ReservationStatus.DELIVERED.value
    assert reservation.final_balance == 490_000
    assert booking.status == BookingStatus.DELIVERED.value


def test_booking_status_edit_on_completed_reservation(database, bookings, make_reservation):
    reservation = make_reservation(confirm=True, create_booking=True)
    bookings.mark_completed(reservation.id)
    _, booking = load_pair(database, reservation.id)

    bookings.update_booking(booking.id, {"status": "DEPOSIT_COMPLETED", "admin_note": "paid"})

    reservation, _ = load_pair(database, reservation.id)
    assert reservation.status == ReservationStatus.COMPLETED.value


def test_booking_edit_rejects_unknown_fields(database, bookings, make_reservation):
    reservation = make_reservation(confirm=True, create_booking=True)
    _, booking = load_pair(database, reservation.id)

    with pytest.raises(ValidationError, match="final_balance"):
        bookings.update_booking(booking.id, {"final_balance": 0})
    with pytest.raises(ValidationError):
        bookings.update_booking(booking.id, {"status": "SHIPPED"})


# ==================== FAILURE AND RECONCILIATION ====================


def test_sync_failure_keeps_primary_write(database, bookings, synchronizer, make_reservation, monkeypatch):
    reservation = make_reservation(confirm=True, create_booking=True)

    def fail(*args, **kwargs):
        raise OperationalError("UPDATE bookings", {}, Exception("database is locked"))

    monkeypatch.setattr(synchronizer, "copy_to_booking", fail)
    breakdown = bookings.set_special_discount(reservation.id, 30_000)

    assert breakdown.final_balance == 470_000
    reservation, booking = load_pair(database, reservation.id)
    assert reservation.special_discount == 30_000
    assert reservation.final_balance == 470_000
    assert booking.special_discount == 0
    assert booking.final_balance == 500_000


def test_reconcile_detects_and_repairs_drift(database, bookings, synchronizer, make_reservation, monkeypatch):
    reservation = make_reservation(confirm=True, create_booking=True)

    def fail(*args, **kwargs):
        raise OperationalError("UPDATE bookings", {}, Exception("database is locked"))

    monkeypatch.setattr(synchronizer, "copy_to_booking", fail)
    bookings.set_special_discount(reservation.id, 30_000)
    monkeypatch.undo()

    drifts = synchronizer.reconcile()
    fields = {d.field for d in drifts}
    assert "booking.final_balance" in fields
    assert "booking.special_discount" in fields
    assert all(d.reservation_id == reservation.id for d in drifts)

    repaired = synchronizer.reconcile(repair=True)
    assert len(repaired) == len(drifts)
    assert synchronizer.reconcile() == []

    _, booking = load_pair(database, reservation.id)
    assert booking.final_balance == 470_000


def test_reconcile_recomputes_stale_reservation(database, synchronizer, make_reservation):
    reservation = make_reservation(confirm=True)
    with database.session() as session:
        ReservationRepository(session).get_for_update(reservation.id).final_balance = 1

    drifts = synchronizer.reconcile(repair=True)

    assert [(d.field, d.expected, d.actual) for d in drifts] == [("reservation.final_balance", 500_000, 1)]
    reservation, _ = load_pair(database, reservation.id)
    assert reservation.final_balance == 500_000


def test_reconcile_clean_database(synchronizer, make_reservation):
    make_reservation(confirm=True, create_booking=True)
    make_reservation(author="김철수")
    assert synchronizer.reconcile() == []
