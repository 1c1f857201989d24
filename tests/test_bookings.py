from datetime import date

import pytest

from conftest import TODAY
from rauvfilm.bookings.service import MAX_ADMIN_DISCOUNT, parse_date
from rauvfilm.errors import InvalidStateError, NotFoundError, ValidationError
from rauvfilm.security.encryption import get_cipher
from rauvfilm.storage.models import BookingStatus, ReservationStatus
from rauvfilm.storage.repo import BookingRepository


def test_create_prices_tier_and_options(make_reservation):
    reservation = make_reservation(options={"makeup_shoot": True, "usb_option": False}, new_year_eligible=True)

    assert reservation.status == ReservationStatus.PENDING.value
    assert reservation.total_amount == 800_000
    assert reservation.new_year_discount == 50_000
    assert reservation.deposit_amount == 100_000
    assert reservation.final_balance == 650_000
    assert reservation.referral_code is None


def test_economy_gets_no_new_year_discount(make_reservation):
    reservation = make_reservation(product_tier="가성비형", new_year_eligible=True)

    assert reservation.product_tier == "economy"
    assert reservation.new_year_discount == 0
    assert reservation.final_balance == 240_000


def test_explicit_total_amount_and_travel_fee(make_reservation):
    reservation = make_reservation(total_amount=700_000, travel_fee=50_000, event_discount=30_000)
    assert reservation.final_balance == 620_000


def test_identity_fields_are_encrypted(make_reservation):
    reservation = make_reservation(bride_name="김신부", bride_phone="010-1234-5678")
    cipher = get_cipher()

    assert reservation.author.startswith("ENC:")
    assert cipher.decrypt(reservation.author) == "홍길동"
    assert cipher.decrypt(reservation.bride_name) == "김신부"
    assert cipher.decrypt(reservation.bride_phone) == "01012345678"
    assert reservation.groom_phone is None


def test_create_requires_author(bookings):
    with pytest.raises(ValidationError):
        bookings.create_reservation(author=" ", event_date=date(2026, 5, 10), product_tier="standard")


def test_create_rejects_unknown_tier(bookings):
    with pytest.raises(ValidationError, match="Unknown product tier"):
        bookings.create_reservation(author="홍길동", event_date=date(2026, 5, 10), product_tier="deluxe")


def test_create_rejects_bad_date(bookings):
    with pytest.raises(ValidationError, match="Invalid date"):
        bookings.create_reservation(author="홍길동", event_date="next spring", product_tier="standard")


def test_parse_date():
    assert parse_date("2026-05-10") == date(2026, 5, 10)
    assert parse_date("2026-05-10T09:00:00") == date(2026, 5, 10)
    assert parse_date(date(2026, 5, 10)) == date(2026, 5, 10)


# ==================== CONFIRMATION ====================


def test_confirm_issues_code_and_balance(bookings, make_reservation):
    reservation = make_reservation()

    result = bookings.confirm(reservation.id, today=TODAY)

    assert result.reservation.status == ReservationStatus.CONFIRMED.value
    assert result.reservation.confirmed_at is not None
    assert result.referral_code == "260510홍길동"
    assert result.referral is None
    assert result.booking is None
    assert result.breakdown.final_balance == 500_000


def test_confirm_twice_rejected(bookings, make_reservation):
    reservation = make_reservation(confirm=True)

    with pytest.raises(InvalidStateError):
        bookings.confirm(reservation.id, today=TODAY)


def test_confirm_unknown_reservation(bookings):
    with pytest.raises(NotFoundError):
        bookings.confirm(999)


def test_confirm_with_booking(bookings, make_reservation):
    reservation = make_reservation()

    result = bookings.confirm(reservation.id, today=TODAY, create_booking=True)

    assert result.booking is not None
    assert result.booking.reservation_id == reservation.id
    assert result.booking.partner_code == result.referral_code


# ==================== PROMOTION ====================


def test_promote_is_idempotent(bookings, make_reservation):
    reservation = make_reservation(confirm=True)

    first = bookings.promote_to_booking(reservation.id)
    second = bookings.promote_to_booking(reservation.id)

    assert first.id == second.id
    assert first.status == BookingStatus.CONFIRMED.value


def test_pending_reservation_cannot_be_promoted(bookings, make_reservation):
    reservation = make_reservation()

    with pytest.raises(InvalidStateError):
        bookings.promote_to_booking(reservation.id)


# ==================== STATUS ====================


def test_cancel_then_no_further_changes(bookings, make_reservation):
    reservation = make_reservation(confirm=True)

    cancelled = bookings.cancel(reservation.id)
    assert cancelled.status == ReservationStatus.CANCELLED.value

    with pytest.raises(InvalidStateError):
        bookings.mark_completed(reservation.id)
    with pytest.raises(InvalidStateError):
        bookings.promote_to_booking(reservation.id)


def test_delivery_sets_booking_video(database, bookings, make_reservation):
    reservation = make_reservation(confirm=True, create_booking=True)

    delivered = bookings.mark_delivered(reservation.id, video_url="https://vimeo.com/123")

    assert delivered.status == ReservationStatus.DELIVERED.value
    with database.session() as session:
        booking = BookingRepository(session).get_by_reservation(reservation.id)
        assert booking.status == BookingStatus.DELIVERED.value
        assert booking.video_url == "https://vimeo.com/123"


def test_completion_maps_to_deposit_completed(database, bookings, make_reservation):
    reservation = make_reservation(confirm=True, create_booking=True)

    bookings.mark_completed(reservation.id)

    with database.session() as session:
        booking = BookingRepository(session).get_by_reservation(reservation.id)
        assert booking.status == BookingStatus.DEPOSIT_COMPLETED.value


# ==================== DISCOUNTS ====================


def test_event_and_special_discounts(bookings, make_reservation):
    reservation = make_reservation(confirm=True)

    bookings.set_event_discount(reservation.id, 50_000)
    breakdown = bookings.set_special_discount(reservation.id, 20_000)

    assert breakdown.event_discount == 50_000
    assert breakdown.special_discount == 20_000
    assert breakdown.final_balance == 430_000
    assert bookings.get_balance(reservation.id) == breakdown


def test_discount_bounds(bookings, make_reservation):
    reservation = make_reservation(confirm=True)

    with pytest.raises(ValidationError):
        bookings.set_special_discount(reservation.id, -1)
    with pytest.raises(ValidationError):
        bookings.set_event_discount(reservation.id, MAX_ADMIN_DISCOUNT + 1)


def test_large_discount_floors_balance_at_zero(bookings, make_reservation):
    reservation = make_reservation(confirm=True)

    breakdown = bookings.set_special_discount(reservation.id, 900_000)

    assert breakdown.final_balance == 0


def test_get_balance_unknown_reservation(bookings):
    with pytest.raises(NotFoundError):
        bookings.get_balance(999)
