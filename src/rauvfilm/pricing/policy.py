"""Discount policy and product tier definitions."""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from rauvfilm.settings import Settings, settings


class ProductTier(str, Enum):
    """Videography product tiers, cheapest first."""

    ECONOMY = "economy"      # 가성비형
    STANDARD = "standard"    # 기본형
    CINEMATIC = "cinematic"  # 시네마틱형

    @classmethod
    def from_label(cls, label: str) -> "ProductTier":
        """Resolve a tier from its enum value or its Korean product name.

        Args:
            label: "economy" / "가성비형" etc.

        Returns:
            Matching product tier
        """
        value = (label or "").strip()
        for tier, korean in TIER_LABELS.items():
            if value.lower() == tier.value or value == korean:
                return tier
        raise ValueError(f"Unknown product tier: {label}")


TIER_LABELS: dict[ProductTier, str] = {
    ProductTier.ECONOMY: "가성비형",
    ProductTier.STANDARD: "기본형",
    ProductTier.CINEMATIC: "시네마틱형",
}


@dataclass(frozen=True)
class ReviewTierRule:
    """What approved reviews earn for one product tier.

    A reservation qualifies once it has at least ``min_approved`` approved
    submissions. It then receives ``discount_units`` review discounts (each worth
    ``DiscountPolicy.review_amount``) and, where ``unlocks_raw_footage`` is set,
    delivery of the raw footage.
    """

    min_approved: int
    discount_units: int
    unlocks_raw_footage: bool = False


DEFAULT_REVIEW_TIERS: Mapping[ProductTier, ReviewTierRule] = MappingProxyType({
    ProductTier.ECONOMY: ReviewTierRule(min_approved=1, discount_units=0, unlocks_raw_footage=True),
    ProductTier.STANDARD: ReviewTierRule(min_approved=2, discount_units=2),
    ProductTier.CINEMATIC: ReviewTierRule(min_approved=2, discount_units=2),
})

DEFAULT_BASE_PRICES: Mapping[ProductTier, int] = MappingProxyType({
    ProductTier.ECONOMY: 340_000,
    ProductTier.STANDARD: 600_000,
    ProductTier.CINEMATIC: 950_000,
})

DEFAULT_OPTION_PRICES: Mapping[str, int] = MappingProxyType({
    "makeup_shoot": 200_000,
    "paebaek_shoot": 50_000,
    "reception_shoot": 50_000,
    "usb_option": 20_000,
})


@dataclass(frozen=True)
class DiscountPolicy:
    """Every amount and rule the balance depends on, passed explicitly."""

    deposit_amount: int = 100_000
    referral_amount: int = 10_000
    review_amount: int = 10_000
    new_year_amount: int = 50_000
    new_year_excluded_tiers: frozenset[ProductTier] = frozenset({ProductTier.ECONOMY})
    base_prices: Mapping[ProductTier, int] = field(default_factory=lambda: DEFAULT_BASE_PRICES)
    option_prices: Mapping[str, int] = field(default_factory=lambda: DEFAULT_OPTION_PRICES)
    review_tiers: Mapping[ProductTier, ReviewTierRule] = field(default_factory=lambda: DEFAULT_REVIEW_TIERS)

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "DiscountPolicy":
        """Build a policy from application settings."""
        config = config or settings
        return cls(
            deposit_amount=config.deposit_amount,
            referral_amount=config.referral_discount_amount,
            review_amount=config.review_discount_amount,
            new_year_amount=config.new_year_discount_amount,
        )

    def review_rule(self, tier: ProductTier) -> ReviewTierRule:
        """Get the review tier rule for a product tier."""
        return self.review_tiers[tier]

    def new_year_discount_for(self, tier: ProductTier, eligible: bool) -> int:
        """New-year event discount for a tier, zero when not eligible."""
        if not eligible or tier in self.new_year_excluded_tiers:
            return 0
        return self.new_year_amount

    def list_price_for(self, tier: ProductTier, options: dict[str, bool] | None = None) -> int:
        """Price a product tier plus its selected shooting options.

        Args:
            tier: Product tier
            options: Option name -> selected flag (unknown options are ignored)

        Returns:
            List price in KRW
        """
        price = self.base_prices[tier]
        for name, selected in (options or {}).items():
            if selected:
                price += self.option_prices.get(name, 0)
        return price


DEFAULT_POLICY = DiscountPolicy()
