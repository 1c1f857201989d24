"""Shared fixtures: in-memory database and services wired to it."""

from datetime import date

import pytest

from rauvfilm.bookings.changes import ChangeRequestService
from rauvfilm.bookings.service import BookingService
from rauvfilm.pricing.policy import DEFAULT_POLICY
from rauvfilm.referral.service import ReferralLedger
from rauvfilm.reviews.discount_gate import ReviewDiscountGate
from rauvfilm.reviews.service import ReviewService
from rauvfilm.storage.db import Database
from rauvfilm.sync.synchronizer import DualRecordSynchronizer

# Reference "today" used for referrer expiry in every test
TODAY = date(2026, 1, 1)


@pytest.fixture
def database():
    database = Database("sqlite://")
    database.create_tables()
    yield database
    database.engine.dispose()


@pytest.fixture
def synchronizer(database):
    return DualRecordSynchronizer(database, DEFAULT_POLICY)


@pytest.fixture
def ledger(database, synchronizer):
    return ReferralLedger(database, DEFAULT_POLICY, synchronizer)


@pytest.fixture
def bookings(database, ledger, synchronizer):
    return BookingService(database, DEFAULT_POLICY, ledger, synchronizer)


@pytest.fixture
def reviews(database, synchronizer):
    return ReviewService(database, DEFAULT_POLICY, ReviewDiscountGate(DEFAULT_POLICY, synchronizer))


@pytest.fixture
def changes(database, synchronizer):
    return ChangeRequestService(database, DEFAULT_POLICY, synchronizer)


@pytest.fixture
def make_reservation(bookings):
    """Create a reservation, optionally confirming it (and promoting it)."""

    def _make(
        author="홍길동",
        event_date=date(2026, 5, 10),
        product_tier="standard",
        confirm=False,
        create_booking=False,
        **kwargs,
    ):
        reservation = bookings.create_reservation(
            author=author,
            event_date=event_date,
            product_tier=product_tier,
            **kwargs,
        )
        if confirm:
            bookings.confirm(reservation.id, today=TODAY, create_booking=create_booking)
            reservation = bookings.get_reservation(reservation.id)
        return reservation

    return _make
