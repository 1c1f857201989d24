"""Database models for reservations, bookings, referrals and reviews."""

from datetime import date, datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON, Boolean, Date, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class ReservationStatus(str, Enum):
    """Customer-facing reservation status."""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    DELIVERED = "DELIVERED"


class BookingStatus(str, Enum):
    """Internal booking status."""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    DEPOSIT_COMPLETED = "DEPOSIT_COMPLETED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class ReviewPlatform(str, Enum):
    """Where a submitted review is hosted."""
    NAVER_BLOG = "NAVER_BLOG"
    NAVER_CAFE = "NAVER_CAFE"
    INSTAGRAM = "INSTAGRAM"
    OTHER = "OTHER"


class ReviewStatus(str, Enum):
    """Review submission status. APPROVED and REJECTED are terminal."""
    PENDING = "PENDING"
    AUTO_APPROVED = "AUTO_APPROVED"
    MANUAL_REVIEW = "MANUAL_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ReviewType(str, Enum):
    """Reviews written after booking vs. after the shoot."""
    BOOKING = "booking"
    SHOOTING = "shooting"


class ChangeStatus(str, Enum):
    """Pending change request status."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


APPROVED_REVIEW_STATUSES = (ReviewStatus.AUTO_APPROVED.value, ReviewStatus.APPROVED.value)
ACTIVE_REVIEW_STATUSES = (
    ReviewStatus.PENDING.value,
    ReviewStatus.AUTO_APPROVED.value,
    ReviewStatus.MANUAL_REVIEW.value,
    ReviewStatus.APPROVED.value,
)


class Reservation(Base):
    """Customer-submitted reservation inquiry.

    Identity columns hold ciphertext produced by
    ``rauvfilm.security.encryption``. Discount columns are split into
    components (written by the engine's operations) and derived fields
    (written only by ``recompute_reservation``).
    """

    __tablename__ = "reservations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Identity (encrypted)
    author: Mapped[str] = mapped_column(Text, nullable=False)
    bride_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    bride_phone: Mapped[str | None] = mapped_column(Text, nullable=True)
    groom_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    groom_phone: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Event
    event_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    venue_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    product_tier: Mapped[str] = mapped_column(String(20), nullable=False)
    options_json: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    new_year_eligible: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Price
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    travel_fee: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    deposit_amount: Mapped[int] = mapped_column(Integer, default=100_000, nullable=False)

    # Discount components
    event_discount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    new_year_discount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    special_discount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    referral_applied: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    referred_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    review_credit_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Derived fields
    referral_discount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    review_discount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    discount_amount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    final_balance: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Referral linkage
    referral_code: Mapped[str | None] = mapped_column(String(100), nullable=True, unique=True, index=True)
    referred_by: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    referred_by_reservation_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("reservations.id"), nullable=True
    )

    # Benefits and status
    raw_footage_unlocked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=ReservationStatus.PENDING.value, nullable=False, index=True
    )
    is_anonymized: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Metadata
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    booking: Mapped["Booking | None"] = relationship(
        "Booking", back_populates="reservation", uselist=False
    )
    review_submissions: Mapped[list["ReviewSubmission"]] = relationship(
        "ReviewSubmission", back_populates="reservation", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Reservation(id={self.id}, status='{self.status}', balance={self.final_balance})>"


class Booking(Base):
    """Internal operational twin of a reservation."""

    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    reservation_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("reservations.id"), nullable=False, unique=True, index=True
    )

    # Customer (encrypted)
    customer_name: Mapped[str] = mapped_column(Text, nullable=False)
    customer_phone: Mapped[str | None] = mapped_column(Text, nullable=True)

    event_date: Mapped[date] = mapped_column(Date, nullable=False)
    venue_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    product_tier: Mapped[str] = mapped_column(String(20), nullable=False)

    # Price
    list_price: Mapped[int] = mapped_column(Integer, nullable=False)
    travel_fee: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    deposit_amount: Mapped[int] = mapped_column(Integer, default=100_000, nullable=False)

    # Discounts (mirrored from the reservation)
    event_discount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    new_year_discount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    special_discount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    referral_discount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    review_discount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    discount_amount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    final_balance: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    referred_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Referral linkage
    partner_code: Mapped[str | None] = mapped_column(String(100), nullable=True, unique=True, index=True)
    referred_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    referred_by_booking_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("bookings.id"), nullable=True
    )

    # Delivery artifacts
    video_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    contract_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    raw_footage_unlocked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    admin_note: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(
        String(20), default=BookingStatus.PENDING.value, nullable=False, index=True
    )
    is_anonymized: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    reservation: Mapped["Reservation"] = relationship("Reservation", back_populates="booking")

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, reservation={self.reservation_id}, status='{self.status}')>"


class ReferralCode(Base):
    """Canonical referral code index.

    One row per issued code. The code is stored already normalized, so
    lookups are a plain equality match on an indexed unique column.
    """

    __tablename__ = "referral_codes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    reservation_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("reservations.id"), nullable=False, unique=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    reservation: Mapped["Reservation"] = relationship("Reservation")

    def __repr__(self) -> str:
        return f"<ReferralCode(code={self.code}, reservation={self.reservation_id})>"


class ReviewSubmission(Base):
    """A customer-submitted review link and its verification outcome."""

    __tablename__ = "review_submissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    reservation_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("reservations.id"), nullable=False, index=True
    )

    review_url: Mapped[str] = mapped_column(Text, nullable=False)
    normalized_url: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    review_type: Mapped[str] = mapped_column(String(20), default=ReviewType.BOOKING.value, nullable=False)
    platform: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=ReviewStatus.PENDING.value, nullable=False, index=True
    )

    # Verification outcome
    auto_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    title_valid: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    content_valid: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    character_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    verification_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    reject_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Extracted metadata
    title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    excerpt: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    verified_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    verified_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    reservation: Mapped["Reservation"] = relationship("Reservation", back_populates="review_submissions")

    def __repr__(self) -> str:
        return f"<ReviewSubmission(id={self.id}, platform='{self.platform}', status='{self.status}')>"


class CuratedReview(Base):
    """Review registered by an admin for the public showcase."""

    __tablename__ = "curated_reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    source_url: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )


class PendingChange(Base):
    """Customer-requested reservation edit awaiting admin approval."""

    __tablename__ = "pending_changes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    reservation_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("reservations.id"), nullable=False, index=True
    )
    # {field: {"old": ..., "new": ...}}
    changes: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=ChangeStatus.PENDING.value, nullable=False)
    reject_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )
