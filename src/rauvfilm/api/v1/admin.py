"""Admin API v1 endpoints.

Authentication is handled in front of this service; these routes only
translate requests into engine operations.
"""

from datetime import date
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from rauvfilm.api.deps import (
    get_booking_service,
    get_change_request_service,
    get_referral_ledger,
    get_review_service,
    get_synchronizer,
)
from rauvfilm.api.v1.reservations import (
    BalanceResponse,
    ReservationResponse,
    balance_response,
    reservation_response,
)
from rauvfilm.api.v1.reviews import ReviewSubmissionResponse, submission_response
from rauvfilm.bookings.changes import ChangeRequestService
from rauvfilm.bookings.service import BookingService
from rauvfilm.logging_config import get_logger
from rauvfilm.referral.service import ReferralLedger
from rauvfilm.reviews.service import ReviewService
from rauvfilm.storage.models import Booking
from rauvfilm.sync.synchronizer import DualRecordSynchronizer

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


# ==================== MODELS ====================


class ConfirmRequest(BaseModel):
    """Request to confirm a reservation."""
    create_booking: bool = False
    today: date | None = None


class ReferralResult(BaseModel):
    applied: bool
    referee_discount: int = 0
    referrer_discount: int = 0
    referrer_credited: bool = False
    error: str | None = None


class ConfirmResponse(BaseModel):
    """Outcome of a confirmation."""
    reservation: ReservationResponse
    referral_code: str
    balance: BalanceResponse
    referral: ReferralResult | None = None
    booking_id: int | None = None


class DiscountRequest(BaseModel):
    amount: int = Field(..., ge=0, le=10_000_000)


class ReassignReferralRequest(BaseModel):
    code: str | None = None


class RejectRequest(BaseModel):
    reason: str = Field(..., min_length=1)


class CuratedReviewRequest(BaseModel):
    source_url: str
    title: str | None = None


class BookingUpdateRequest(BaseModel):
    changes: dict[str, Any]


class BookingResponse(BaseModel):
    """Internal booking view."""
    id: int
    reservation_id: int
    status: str
    partner_code: str | None = None
    list_price: int
    discount_amount: int
    final_balance: int
    referral_discount: int
    review_discount: int


class GateResponse(BaseModel):
    approved_count: int
    granted: bool
    review_discount: int
    raw_footage_unlocked: bool
    reason: str | None = None


def booking_response(booking: Booking) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        reservation_id=booking.reservation_id,
        status=booking.status,
        partner_code=booking.partner_code,
        list_price=booking.list_price,
        discount_amount=booking.discount_amount,
        final_balance=booking.final_balance,
        referral_discount=booking.referral_discount,
        review_discount=booking.review_discount,
    )


# ==================== RESERVATIONS ====================


@router.post("/reservations/{reservation_id}/confirm", response_model=ConfirmResponse)
async def confirm_reservation(
    reservation_id: int,
    body: ConfirmRequest,
    service: BookingService = Depends(get_booking_service),
):
    """Confirm a reservation, issue its referral code and credit its referral pair."""
    result = service.confirm(reservation_id, today=body.today, create_booking=body.create_booking)
    referral = None
    if result.referral is not None:
        referral = ReferralResult(
            applied=result.referral.applied,
            referee_discount=result.referral.referee_discount,
            referrer_discount=result.referral.referrer_discount,
            referrer_credited=result.referral.referrer_credited,
            error=result.referral.error,
        )
    return ConfirmResponse(
        reservation=reservation_response(result.reservation),
        referral_code=result.referral_code,
        balance=balance_response(result.breakdown),
        referral=referral,
        booking_id=result.booking.id if result.booking else None,
    )


@router.post("/reservations/{reservation_id}/booking", response_model=BookingResponse)
async def promote_to_booking(
    reservation_id: int,
    service: BookingService = Depends(get_booking_service),
):
    """Create the internal booking for a confirmed reservation."""
    return booking_response(service.promote_to_booking(reservation_id))


@router.post("/reservations/{reservation_id}/cancel", response_model=ReservationResponse)
async def cancel_reservation(
    reservation_id: int,
    service: BookingService = Depends(get_booking_service),
):
    return reservation_response(service.cancel(reservation_id))


@router.put("/reservations/{reservation_id}/event-discount", response_model=BalanceResponse)
async def set_event_discount(
    reservation_id: int,
    body: DiscountRequest,
    service: BookingService = Depends(get_booking_service),
):
    return balance_response(service.set_event_discount(reservation_id, body.amount))


@router.put("/reservations/{reservation_id}/special-discount", response_model=BalanceResponse)
async def set_special_discount(
    reservation_id: int,
    body: DiscountRequest,
    service: BookingService = Depends(get_booking_service),
):
    """Set an admin special discount."""
    return balance_response(service.set_special_discount(reservation_id, body.amount))


@router.put("/reservations/{reservation_id}/referral", response_model=ReservationResponse)
async def reassign_referral(
    reservation_id: int,
    body: ReassignReferralRequest,
    ledger: ReferralLedger = Depends(get_referral_ledger),
):
    """Change or clear the referral code a pending reservation entered."""
    return reservation_response(ledger.reassign_referral(reservation_id, body.code))


@router.get("/referrals/{code}", response_model=list[ReservationResponse])
async def list_referrals(
    code: str,
    ledger: ReferralLedger = Depends(get_referral_ledger),
):
    """Reservations that entered a referral code."""
    return [reservation_response(r) for r in ledger.list_referrals(code)]


# ==================== BOOKINGS ====================


@router.patch("/bookings/{booking_id}", response_model=BookingResponse)
async def update_booking(
    booking_id: int,
    body: BookingUpdateRequest,
    service: BookingService = Depends(get_booking_service),
):
    """Edit a booking; the edit is carried back to its reservation."""
    return booking_response(service.update_booking(booking_id, body.changes))


# ==================== REVIEWS ====================


@router.post("/reviews/{submission_id}/approve", response_model=GateResponse)
async def approve_review(
    submission_id: int,
    service: ReviewService = Depends(get_review_service),
):
    """Approve a review submission and apply review benefits."""
    gate = service.approve(submission_id)
    return GateResponse(
        approved_count=gate.approved_count,
        granted=gate.granted,
        review_discount=gate.review_discount,
        raw_footage_unlocked=gate.raw_footage_unlocked,
        reason=gate.reason,
    )


@router.post("/reviews/{submission_id}/reject", response_model=ReviewSubmissionResponse)
async def reject_review(
    submission_id: int,
    body: RejectRequest,
    service: ReviewService = Depends(get_review_service),
):
    return submission_response(service.reject(submission_id, body.reason))


@router.post("/curated-reviews")
async def add_curated_review(
    body: CuratedReviewRequest,
    service: ReviewService = Depends(get_review_service),
):
    review = service.add_curated(body.source_url, body.title)
    return {"id": review.id, "source_url": review.source_url, "title": review.title}


# ==================== PENDING CHANGES ====================


@router.post("/pending-changes/{change_id}/approve", response_model=ReservationResponse)
async def approve_change(
    change_id: int,
    service: ChangeRequestService = Depends(get_change_request_service),
):
    return reservation_response(service.approve(change_id))


@router.post("/pending-changes/{change_id}/reject")
async def reject_change(
    change_id: int,
    body: RejectRequest,
    service: ChangeRequestService = Depends(get_change_request_service),
):
    change = service.reject(change_id, body.reason)
    return {"id": change.id, "status": change.status, "reject_reason": change.reject_reason}


# ==================== MAINTENANCE ====================


@router.post("/reconcile")
async def reconcile(
    repair: bool = False,
    synchronizer: DualRecordSynchronizer = Depends(get_synchronizer),
):
    """Report (and optionally repair) reservation/booking drift."""
    drifts = synchronizer.reconcile(repair=repair)
    return {
        "drift_count": len(drifts),
        "repaired": repair,
        "drifts": [
            {
                "reservation_id": d.reservation_id,
                "booking_id": d.booking_id,
                "field": d.field,
                "expected": d.expected,
                "actual": d.actual,
            }
            for d in drifts
        ],
    }
