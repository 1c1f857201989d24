"""Exceptions raised by the reconciliation engine.

Only validation problems and missing records are raised. Routine business
outcomes (a cancelled referrer, a private review post) come back as
structured results instead.
"""


class RauvError(Exception):
    """Base class for all engine errors."""


class ValidationError(RauvError):
    """The caller supplied input that cannot be accepted. No state was changed."""


class NotFoundError(RauvError):
    """Raised when a referenced record does not exist."""

    def __init__(self, entity: str, entity_id: int | str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class ReferralCodeNotFoundError(ValidationError):
    """Raised when a referral code does not belong to any confirmed reservation."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Referral code not found: {code}")


class InvalidReviewUrlError(ValidationError):
    """Raised when a submitted review link is not a usable http(s) URL."""


class DuplicateReviewError(ValidationError):
    """Raised when a review URL was already submitted or curated."""

    def __init__(self, message: str, duplicate_type: str):
        self.duplicate_type = duplicate_type
        super().__init__(message)


class SubmissionLimitError(ValidationError):
    """Raised when a reservation already holds the maximum number of reviews."""


class InvalidStateError(ValidationError):
    """Raised when an operation is not allowed in the record's current status."""
