"""Initial schema

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

Creates tables for:
- reservations: customer reservations with discount components
- bookings: internal twin of confirmed reservations
- referral_codes: normalized referral code index
- review_submissions: customer review links and verification outcome
- curated_reviews: admin-registered reviews
- pending_changes: customer edits awaiting approval
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables."""

    op.create_table(
        "reservations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("author", sa.Text(), nullable=False),
        sa.Column("bride_name", sa.Text(), nullable=True),
        sa.Column("bride_phone", sa.Text(), nullable=True),
        sa.Column("groom_name", sa.Text(), nullable=True),
        sa.Column("groom_phone", sa.Text(), nullable=True),
        sa.Column("event_date", sa.Date(), nullable=False),
        sa.Column("venue_name", sa.String(255), nullable=True),
        sa.Column("product_tier", sa.String(20), nullable=False),
        sa.Column("options_json", sa.JSON(), nullable=True),
        sa.Column("new_year_eligible", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("total_amount", sa.Integer(), nullable=False),
        sa.Column("travel_fee", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("deposit_amount", sa.Integer(), nullable=False, server_default="100000"),
        sa.Column("event_discount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("new_year_discount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("special_discount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("referral_applied", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("referred_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("review_credit_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("referral_discount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("review_discount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("discount_amount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("final_balance", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("referral_code", sa.String(100), nullable=True),
        sa.Column("referred_by", sa.String(100), nullable=True),
        sa.Column("referred_by_reservation_id", sa.Integer(), nullable=True),
        sa.Column("raw_footage_unlocked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("is_anonymized", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("confirmed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["referred_by_reservation_id"], ["reservations.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_reservations_event_date", "reservations", ["event_date"], unique=False)
    op.create_index("ix_reservations_referral_code", "reservations", ["referral_code"], unique=True)
    op.create_index("ix_reservations_referred_by", "reservations", ["referred_by"], unique=False)
    op.create_index("ix_reservations_status", "reservations", ["status"], unique=False)

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("reservation_id", sa.Integer(), nullable=False),
        sa.Column("customer_name", sa.Text(), nullable=False),
        sa.Column("customer_phone", sa.Text(), nullable=True),
        sa.Column("event_date", sa.Date(), nullable=False),
        sa.Column("venue_name", sa.String(255), nullable=True),
        sa.Column("product_tier", sa.String(20), nullable=False),
        sa.Column("list_price", sa.Integer(), nullable=False),
        sa.Column("travel_fee", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("deposit_amount", sa.Integer(), nullable=False, server_default="100000"),
        sa.Column("event_discount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("new_year_discount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("special_discount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("referral_discount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("review_discount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("discount_amount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("final_balance", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("referred_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("partner_code", sa.String(100), nullable=True),
        sa.Column("referred_by", sa.String(100), nullable=True),
        sa.Column("referred_by_booking_id", sa.Integer(), nullable=True),
        sa.Column("video_url", sa.Text(), nullable=True),
        sa.Column("contract_url", sa.Text(), nullable=True),
        sa.Column("raw_footage_unlocked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("admin_note", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("is_anonymized", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["reservation_id"], ["reservations.id"]),
        sa.ForeignKeyConstraint(["referred_by_booking_id"], ["bookings.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_bookings_reservation_id", "bookings", ["reservation_id"], unique=True)
    op.create_index("ix_bookings_partner_code", "bookings", ["partner_code"], unique=True)
    op.create_index("ix_bookings_status", "bookings", ["status"], unique=False)

    op.create_table(
        "referral_codes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(100), nullable=False),
        sa.Column("reservation_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["reservation_id"], ["reservations.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("reservation_id"),
    )
    op.create_index("ix_referral_codes_code", "referral_codes", ["code"], unique=True)

    op.create_table(
        "review_submissions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("reservation_id", sa.Integer(), nullable=False),
        sa.Column("review_url", sa.Text(), nullable=False),
        sa.Column("normalized_url", sa.String(500), nullable=False),
        sa.Column("review_type", sa.String(20), nullable=False, server_default="booking"),
        sa.Column("platform", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("auto_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("title_valid", sa.Boolean(), nullable=True),
        sa.Column("content_valid", sa.Boolean(), nullable=True),
        sa.Column("character_count", sa.Integer(), nullable=True),
        sa.Column("verification_message", sa.Text(), nullable=True),
        sa.Column("reject_reason", sa.Text(), nullable=True),
        sa.Column("title", sa.String(500), nullable=True),
        sa.Column("excerpt", sa.Text(), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("verified_at", sa.DateTime(), nullable=True),
        sa.Column("verified_by", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["reservation_id"], ["reservations.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_review_submissions_reservation_id", "review_submissions", ["reservation_id"], unique=False)
    op.create_index("ix_review_submissions_normalized_url", "review_submissions", ["normalized_url"], unique=False)
    op.create_index("ix_review_submissions_status", "review_submissions", ["status"], unique=False)

    op.create_table(
        "curated_reviews",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("source_url", sa.Text(), nullable=False),
        sa.Column("title", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "pending_changes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("reservation_id", sa.Integer(), nullable=False),
        sa.Column("changes", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("reject_reason", sa.Text(), nullable=True),
        sa.Column("reviewed_by", sa.String(100), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["reservation_id"], ["reservations.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_pending_changes_reservation_id", "pending_changes", ["reservation_id"], unique=False)


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index("ix_pending_changes_reservation_id", table_name="pending_changes")
    op.drop_table("pending_changes")
    op.drop_table("curated_reviews")
    op.drop_index("ix_review_submissions_status", table_name="review_submissions")
    op.drop_index("ix_review_submissions_normalized_url", table_name="review_submissions")
    op.drop_index("ix_review_submissions_reservation_id", table_name="review_submissions")
    op.drop_table("review_submissions")
    op.drop_index("ix_referral_codes_code", table_name="referral_codes")
    op.drop_table("referral_codes")
    op.drop_index("ix_bookings_status", table_name="bookings")
    op.drop_index("ix_bookings_partner_code", table_name="bookings")
    op.drop_index("ix_bookings_reservation_id", table_name="bookings")
    op.drop_table("bookings")
    op.drop_index("ix_reservations_status", table_name="reservations")
    op.drop_index("ix_reservations_referred_by", table_name="reservations")
    op.drop_index("ix_reservations_referral_code", table_name="reservations")
    op.drop_index("ix_reservations_event_date", table_name="reservations")
    op.drop_table("reservations")
