"""Service dependencies for API routes (overridable in tests)."""

from rauvfilm.bookings.changes import ChangeRequestService, change_request_service
from rauvfilm.bookings.service import BookingService, booking_service
from rauvfilm.referral.service import ReferralLedger, referral_ledger
from rauvfilm.reviews.service import ReviewService, review_service
from rauvfilm.sync.synchronizer import DualRecordSynchronizer, dual_record_sync


def get_booking_service() -> BookingService:
    return booking_service


def get_referral_ledger() -> ReferralLedger:
    return referral_ledger


def get_review_service() -> ReviewService:
    return review_service


def get_change_request_service() -> ChangeRequestService:
    return change_request_service


def get_synchronizer() -> DualRecordSynchronizer:
    return dual_record_sync
