"""Referral API v1 endpoints."""

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from rauvfilm.api.deps import get_referral_ledger
from rauvfilm.api.rate_limit import REFERRAL_VALIDATE_LIMIT, limiter
from rauvfilm.logging_config import get_logger
from rauvfilm.referral.service import ReferralLedger

logger = get_logger(__name__)

router = APIRouter(prefix="/referral", tags=["referral"])


class ValidateCodeResponse(BaseModel):
    """Response from code validation."""
    valid: bool
    referrer_name: str | None = None
    referrer_expired: bool = False
    error: str | None = None


@router.get("/validate", response_model=ValidateCodeResponse)
@limiter.limit(REFERRAL_VALIDATE_LIMIT)
async def validate_referral_code(
    request: Request,
    code: str = "",
    ledger: ReferralLedger = Depends(get_referral_ledger),
):
    """Check whether a referral code can be entered on a new reservation.

    Returns the referrer's masked name for confirmation.
    """
    check = ledger.validate_code(code)
    return ValidateCodeResponse(
        valid=check.valid,
        referrer_name=check.referrer_name,
        referrer_expired=check.referrer_expired,
        error=check.error,
    )
