"""Review submission, verification and discount gating."""

from rauvfilm.reviews.discount_gate import ReviewDiscountGate, ReviewGateResult
from rauvfilm.reviews.service import ReviewService, SubmissionResult, review_service
from rauvfilm.reviews.urls import detect_platform, is_same_review_url, normalize_review_url
from rauvfilm.reviews.verification import VerificationResult, verification_message, verify_review

__all__ = [
    "ReviewDiscountGate",
    "ReviewGateResult",
    "ReviewService",
    "SubmissionResult",
    "review_service",
    "detect_platform",
    "is_same_review_url",
    "normalize_review_url",
    "VerificationResult",
    "verification_message",
    "verify_review",
]
