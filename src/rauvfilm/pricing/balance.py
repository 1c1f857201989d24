"""Balance calculation.

Final balance = list price + travel fee - deposit - every discount, never
below zero. The breakdown is always rebuilt from the full set of discount
components; no code path patches a stored balance by a delta.
"""

from dataclasses import asdict, dataclass
from typing import Any

from rauvfilm.pricing.policy import DEFAULT_POLICY, DiscountPolicy
from rauvfilm.storage.models import Reservation


@dataclass(frozen=True)
class BalanceBreakdown:
    """Itemized balance for one reservation."""

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

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def format_lines(self) -> list[str]:
        """Human-readable breakdown, zero discounts omitted."""
        lines = [
            f"List price: {format_krw(self.list_price)}",
        ]
        if self.travel_fee > 0:
            lines.append(f"Travel fee: +{format_krw(self.travel_fee)}")
        lines.append(f"Deposit: -{format_krw(self.deposit_amount)}")

        for label, amount in (
            ("Event discount", self.event_discount),
            ("New year discount", self.new_year_discount),
            ("Special discount", self.special_discount),
            ("Referral discount", self.referral_discount),
            ("Review discount", self.review_discount),
        ):
            if amount > 0:
                lines.append(f"{label}: -{format_krw(amount)}")

        lines.append("-" * 17)
        lines.append(f"Final balance: {format_krw(self.final_balance)}")
        return lines


def format_krw(amount: int) -> str:
    """Format an amount as Korean won (e.g. ``100,000원``)."""
    return f"{amount:,}원"


def calculate_balance(
    list_price: int,
    *,
    deposit_amount: int | None = None,
    travel_fee: int = 0,
    event_discount: int = 0,
    new_year_discount: int = 0,
    special_discount: int = 0,
    has_referral: bool = False,
    referrer_credits: int = 0,
    approved_review_count: int = 0,
    policy: DiscountPolicy = DEFAULT_POLICY,
) -> BalanceBreakdown:
    """Compute the payable balance from list price and discount components.

    Args:
        list_price: Product list price
        deposit_amount: Deposit already paid (defaults to the policy deposit)
        travel_fee: Travel surcharge
        event_discount: Event / seasonal discount amount
        new_year_discount: New-year event discount amount
        special_discount: Admin-granted special discount
        has_referral: Whether this customer redeemed a referral code that was credited
        referrer_credits: Number of confirmed referees credited to this customer
        approved_review_count: Tier-adjusted review count (not the raw submission count)
        policy: Discount policy

    Returns:
        Itemized breakdown; ``final_balance`` is never negative
    """
    deposit = policy.deposit_amount if deposit_amount is None else deposit_amount
    deposit = max(0, deposit)
    travel_fee = max(0, travel_fee)
    event_discount = max(0, event_discount)
    new_year_discount = max(0, new_year_discount)
    special_discount = max(0, special_discount)

    referral_units = (1 if has_referral else 0) + max(0, referrer_credits)
    referral_discount = referral_units * policy.referral_amount
    review_discount = max(0, approved_review_count) * policy.review_amount

    total_discount = (
        event_discount + new_year_discount + special_discount + referral_discount + review_discount
    )
    final_balance = max(0, list_price + travel_fee - deposit - total_discount)

    return BalanceBreakdown(
        list_price=list_price,
        travel_fee=travel_fee,
        deposit_amount=deposit,
        event_discount=event_discount,
        new_year_discount=new_year_discount,
        special_discount=special_discount,
        referral_discount=referral_discount,
        review_discount=review_discount,
        total_discount=total_discount,
        final_balance=final_balance,
    )


def breakdown_for(reservation: Reservation, policy: DiscountPolicy = DEFAULT_POLICY) -> BalanceBreakdown:
    """Build the breakdown from a reservation's stored components."""
    return calculate_balance(
        reservation.total_amount or 0,
        deposit_amount=reservation.deposit_amount,
        travel_fee=reservation.travel_fee or 0,
        event_discount=reservation.event_discount or 0,
        new_year_discount=reservation.new_year_discount or 0,
        special_discount=reservation.special_discount or 0,
        has_referral=bool(reservation.referral_applied),
        referrer_credits=reservation.referred_count or 0,
        approved_review_count=reservation.review_credit_count or 0,
        policy=policy,
    )


def recompute_reservation(
    reservation: Reservation, policy: DiscountPolicy = DEFAULT_POLICY
) -> BalanceBreakdown:
    """Rewrite every derived discount field of a reservation from its components."""
    breakdown = breakdown_for(reservation, policy)
    reservation.referral_discount = breakdown.referral_discount
    reservation.review_discount = breakdown.review_discount
    reservation.discount_amount = breakdown.total_discount
    reservation.final_balance = breakdown.final_balance
    return breakdown
