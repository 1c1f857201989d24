"""rauvfilm - discount, referral and review-verification engine."""

__version__ = "1.0.0"
