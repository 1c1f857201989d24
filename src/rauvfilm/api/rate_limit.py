"""Rate limiting configuration for the rauvfilm API."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from rauvfilm.settings import settings

# Public code lookups; low enough to make guessing codes by name impractical
REFERRAL_VALIDATE_LIMIT = "20/minute"

# Every submission may fetch an external page
REVIEW_SUBMIT_LIMIT = "5/minute"

# Single shared limiter instance - disabled in non-production environments
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["200/minute"],
    storage_uri="memory://",
    enabled=settings.env == "production",
)
