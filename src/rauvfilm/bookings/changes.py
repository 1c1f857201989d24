"""Customer change requests that wait for admin approval."""

from datetime import datetime
from typing import Any

from rauvfilm.bookings.service import parse_date
from rauvfilm.errors import InvalidStateError, NotFoundError, ValidationError
from rauvfilm.logging_config import get_logger
from rauvfilm.pricing.balance import recompute_reservation
from rauvfilm.pricing.policy import DiscountPolicy, ProductTier
from rauvfilm.reviews.discount_gate import ReviewDiscountGate
from rauvfilm.security.encryption import get_cipher, normalize_phone
from rauvfilm.storage.db import Database, db
from rauvfilm.storage.models import ChangeStatus, PendingChange, Reservation, ReservationStatus
from rauvfilm.storage.repo import PendingChangeRepository, ReservationRepository
from rauvfilm.sync.synchronizer import DualRecordSynchronizer

logger = get_logger(__name__)

ENCRYPTED_FIELDS = frozenset({"author", "bride_name", "groom_name"})
PHONE_FIELDS = frozenset({"bride_phone", "groom_phone"})
PLAIN_FIELDS = frozenset({"event_date", "venue_name", "product_tier", "options", "new_year_eligible"})
CHANGEABLE_FIELDS = ENCRYPTED_FIELDS | PHONE_FIELDS | PLAIN_FIELDS

# Changes to these fields re-price the reservation
PRICING_FIELDS = frozenset({"product_tier", "options", "new_year_eligible"})


class ChangeRequestService:
    """Service for pending reservation edits."""

    def __init__(
        self,
        database: Database | None = None,
        policy: DiscountPolicy | None = None,
        synchronizer: DualRecordSynchronizer | None = None,
        gate: ReviewDiscountGate | None = None,
    ):
        self.db = database or db
        self.policy = policy or DiscountPolicy.from_settings()
        self.synchronizer = synchronizer or DualRecordSynchronizer(self.db, self.policy)
        self.gate = gate or ReviewDiscountGate(self.policy, self.synchronizer)

    def _current_value(self, reservation: Reservation, field: str) -> Any:
        if field in ENCRYPTED_FIELDS or field in PHONE_FIELDS:
            return get_cipher().decrypt(getattr(reservation, field))
        if field == "options":
            return reservation.options_json or {}
        if field == "event_date":
            return reservation.event_date.isoformat()
        return getattr(reservation, field)

    def submit(self, reservation_id: int, changes: dict[str, Any]) -> PendingChange:
        """Record a customer's requested edit.

        Args:
            reservation_id: Reservation ID
            changes: Field -> requested new value

        Returns:
            Pending change holding ``{field: {"old", "new"}}`` for fields that differ
        """
        unknown = set(changes) - CHANGEABLE_FIELDS
        if unknown:
            raise ValidationError(f"Fields cannot be changed: {', '.join(sorted(unknown))}")

        with self.db.session() as session:
            reservation = ReservationRepository(session).get_by_id(reservation_id)
            if reservation is None:
                raise NotFoundError("Reservation", reservation_id)
            if reservation.status == ReservationStatus.CANCELLED.value:
                raise InvalidStateError("A cancelled reservation cannot be changed")

            diff: dict[str, Any] = {}
            for field, new in changes.items():
                if field == "event_date":
                    new = parse_date(new).isoformat()
                elif field == "product_tier":
                    new = self._tier(new).value
                elif field in PHONE_FIELDS:
                    new = normalize_phone(new)
                old = self._current_value(reservation, field)
                if old != new:
                    diff[field] = {"old": old, "new": new}

            if not diff:
                raise ValidationError("No changes requested")

            change = PendingChangeRepository(session).add(
                PendingChange(reservation_id=reservation_id, changes=diff)
            )
            logger.info("change_requested", reservation_id=reservation_id, fields=sorted(diff))
            return change

    @staticmethod
    def _tier(label: Any) -> ProductTier:
        try:
            return ProductTier.from_label(str(label))
        except ValueError as e:
            raise ValidationError(str(e)) from e

    def approve(self, change_id: int, reviewed_by: str = "admin") -> Reservation:
        """Apply a pending change to its reservation.

        Identity fields are re-encrypted. A product, option or new-year
        change re-prices the list price and the new-year discount, and a tier
        change also re-derives review benefits from the new tier rule. Every
        other discount component is kept and the balance recomputed.

        Returns:
            Updated reservation
        """
        cipher = get_cipher()
        with self.db.session() as session:
            change = PendingChangeRepository(session).get_for_update(change_id)
            if change is None:
                raise NotFoundError("PendingChange", change_id)
            if change.status != ChangeStatus.PENDING.value:
                raise InvalidStateError("Change request was already processed")

            reservation = ReservationRepository(session).get_for_update(change.reservation_id)
            if reservation is None:
                raise NotFoundError("Reservation", change.reservation_id)

            for field, values in change.changes.items():
                new = values.get("new")
                if field in ENCRYPTED_FIELDS:
                    if field == "author" and not new:
                        raise ValidationError("Contract holder name cannot be empty")
                    setattr(reservation, field, cipher.encrypt(new) if new else None)
                elif field in PHONE_FIELDS:
                    setattr(reservation, field, cipher.encrypt(normalize_phone(new)))
                elif field == "event_date":
                    reservation.event_date = parse_date(new)
                elif field == "options":
                    reservation.options_json = new or None
                elif field == "new_year_eligible":
                    reservation.new_year_eligible = bool(new)
                else:
                    setattr(reservation, field, new)

            if PRICING_FIELDS & set(change.changes):
                tier = ProductTier(reservation.product_tier)
                reservation.total_amount = self.policy.list_price_for(tier, reservation.options_json)
                reservation.new_year_discount = self.policy.new_year_discount_for(
                    tier, reservation.new_year_eligible
                )
            if "product_tier" in change.changes:
                self.gate.rederive(session, reservation)

            recompute_reservation(reservation, self.policy)
            change.status = ChangeStatus.APPROVED.value
            change.reviewed_by = reviewed_by
            change.reviewed_at = datetime.utcnow()
            session.flush()
            self.synchronizer.mirror_to_booking(session, reservation)

            logger.info("change_approved", change_id=change_id, reservation_id=reservation.id)
            return reservation

    def reject(self, change_id: int, reason: str, reviewed_by: str = "admin") -> PendingChange:
        """Reject a pending change. A reason is required."""
        if not reason or not reason.strip():
            raise ValidationError("A rejection reason is required")

        with self.db.session() as session:
            change = PendingChangeRepository(session).get_for_update(change_id)
            if change is None:
                raise NotFoundError("PendingChange", change_id)
            if change.status != ChangeStatus.PENDING.value:
                raise InvalidStateError("Change request was already processed")

            change.status = ChangeStatus.REJECTED.value
            change.reject_reason = reason.strip()
            change.reviewed_by = reviewed_by
            change.reviewed_at = datetime.utcnow()
            logger.info("change_rejected", change_id=change_id)
            return change


# Global change request service instance
change_request_service = ChangeRequestService()
