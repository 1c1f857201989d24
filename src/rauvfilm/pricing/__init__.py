"""Discount policy and balance calculation."""

from rauvfilm.pricing.balance import BalanceBreakdown, breakdown_for, calculate_balance, format_krw, recompute_reservation
from rauvfilm.pricing.policy import DEFAULT_POLICY, DiscountPolicy, ProductTier, ReviewTierRule

__all__ = [
    "BalanceBreakdown",
    "breakdown_for",
    "calculate_balance",
    "format_krw",
    "recompute_reservation",
    "DEFAULT_POLICY",
    "DiscountPolicy",
    "ProductTier",
    "ReviewTierRule",
]
