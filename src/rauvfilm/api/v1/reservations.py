"""Reservation API v1 endpoints."""

from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from rauvfilm.api.deps import get_booking_service, get_change_request_service
from rauvfilm.bookings.changes import ChangeRequestService
from rauvfilm.bookings.service import BookingService
from rauvfilm.logging_config import get_logger
from rauvfilm.pricing.balance import BalanceBreakdown
from rauvfilm.security.encryption import get_cipher, mask_name
from rauvfilm.storage.models import Reservation

logger = get_logger(__name__)

router = APIRouter(prefix="/reservations", tags=["reservations"])


# ==================== MODELS ====================


class ReservationCreateRequest(BaseModel):
    """Request to create a reservation."""
    author: str = Field(..., min_length=1, max_length=50)
    event_date: date
    product_tier: str
    bride_name: str | None = None
    bride_phone: str | None = None
    groom_name: str | None = None
    groom_phone: str | None = None
    venue_name: str | None = None
    options: dict[str, bool] | None = None
    travel_fee: int = Field(default=0, ge=0)
    new_year_eligible: bool = False
    referred_by: str | None = None


class ReservationResponse(BaseModel):
    """Public view of a reservation."""
    id: int
    author: str
    status: str
    event_date: date
    product_tier: str
    total_amount: int
    discount_amount: int
    final_balance: int
    referral_code: str | None = None
    referred_by: str | None = None
    raw_footage_unlocked: bool = False


class BalanceResponse(BaseModel):
    """Itemized balance."""
    list_price: int
    travel_fee: int
    deposit_amount: int
    event_discount: int
    new_year_discount: int
    special_discount: int
    referral_discount: int
    review_discount: int
    total_discount: int
    final_balance: int
    lines: list[str]


class ChangeRequest(BaseModel):
    """Customer-requested edit."""
    changes: dict[str, Any]


def reservation_response(reservation: Reservation) -> ReservationResponse:
    """Serialize a reservation with the contract holder's name masked."""
    return ReservationResponse(
        id=reservation.id,
        author=mask_name(get_cipher().decrypt(reservation.author)),
        status=reservation.status,
        event_date=reservation.event_date,
        product_tier=reservation.product_tier,
        total_amount=reservation.total_amount,
        discount_amount=reservation.discount_amount,
        final_balance=reservation.final_balance,
        referral_code=reservation.referral_code,
        referred_by=reservation.referred_by,
        raw_footage_unlocked=reservation.raw_footage_unlocked,
    )


def balance_response(breakdown: BalanceBreakdown) -> BalanceResponse:
    return BalanceResponse(**breakdown.to_dict(), lines=breakdown.format_lines())


# ==================== ENDPOINTS ====================


@router.post("", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    body: ReservationCreateRequest,
    service: BookingService = Depends(get_booking_service),
):
    """Create a reservation inquiry.

    A referral code entered here is checked immediately; the discount is
    applied when the reservation is confirmed.
    """
    reservation = service.create_reservation(**body.model_dump())
    return reservation_response(reservation)


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(
    reservation_id: int,
    service: BookingService = Depends(get_booking_service),
):
    """Get a reservation."""
    return reservation_response(service.get_reservation(reservation_id))


@router.get("/{reservation_id}/balance", response_model=BalanceResponse)
async def get_balance(
    reservation_id: int,
    service: BookingService = Depends(get_booking_service),
):
    """Get the itemized balance of a reservation."""
    return balance_response(service.get_balance(reservation_id))


@router.post("/{reservation_id}/changes", status_code=status.HTTP_201_CREATED)
async def request_change(
    reservation_id: int,
    body: ChangeRequest,
    service: ChangeRequestService = Depends(get_change_request_service),
):
    """Request an edit; it is applied once an admin approves it."""
    change = service.submit(reservation_id, body.changes)
    return {"id": change.id, "status": change.status, "changes": change.changes}
