"""Referral codes and referral-pair discounts."""

from rauvfilm.referral.codes import generate_referral_code, normalize_code
from rauvfilm.referral.service import ReferralApplyResult, ReferralCodeCheck, ReferralLedger, referral_ledger

__all__ = [
    "generate_referral_code",
    "normalize_code",
    "ReferralApplyResult",
    "ReferralCodeCheck",
    "ReferralLedger",
    "referral_ledger",
]
