from datetime import date

import pytest

from rauvfilm.pricing.balance import calculate_balance, format_krw, recompute_reservation
from rauvfilm.pricing.policy import DEFAULT_POLICY, DiscountPolicy, ProductTier
from rauvfilm.settings import Settings
from rauvfilm.storage.models import Reservation


def test_cinematic_with_referral_and_reviews():
    breakdown = calculate_balance(
        950_000,
        event_discount=50_000,
        has_referral=True,
        approved_review_count=2,
    )

    assert breakdown.deposit_amount == 100_000
    assert breakdown.referral_discount == 10_000
    assert breakdown.review_discount == 20_000
    assert breakdown.total_discount == 80_000
    assert breakdown.final_balance == 770_000


def test_referrer_credits_stack_with_own_referral():
    breakdown = calculate_balance(600_000, has_referral=True, referrer_credits=3)
    assert breakdown.referral_discount == 40_000
    assert breakdown.final_balance == 460_000


def test_balance_never_negative():
    breakdown = calculate_balance(100_000, special_discount=500_000)
    assert breakdown.final_balance == 0
    assert breakdown.total_discount == 500_000


def test_negative_components_are_clamped():
    breakdown = calculate_balance(
        600_000,
        travel_fee=-30_000,
        event_discount=-5,
        referrer_credits=-2,
        approved_review_count=-1,
    )
    assert breakdown.travel_fee == 0
    assert breakdown.event_discount == 0
    assert breakdown.referral_discount == 0
    assert breakdown.review_discount == 0
    assert breakdown.final_balance == 500_000


def test_travel_fee_and_explicit_deposit():
    breakdown = calculate_balance(340_000, deposit_amount=0, travel_fee=40_000)
    assert breakdown.final_balance == 380_000


def test_format_lines_omit_zero_discounts():
    breakdown = calculate_balance(950_000, event_discount=50_000, has_referral=True, approved_review_count=2)
    lines = breakdown.format_lines()

    assert lines[0] == "List price: 950,000원"
    assert "Event discount: -50,000원" in lines
    assert "Referral discount: -10,000원" in lines
    assert not any(line.startswith("Special discount") for line in lines)
    assert not any(line.startswith("Travel fee") for line in lines)
    assert lines[-1] == "Final balance: 770,000원"


def test_format_krw():
    assert format_krw(1_234_567) == "1,234,567원"
    assert format_krw(0) == "0원"


def test_recompute_rewrites_every_derived_field():
    reservation = Reservation(
        author="ENC:x",
        event_date=date(2026, 5, 10),
        product_tier="standard",
        total_amount=600_000,
        travel_fee=0,
        deposit_amount=100_000,
        event_discount=0,
        new_year_discount=50_000,
        special_discount=0,
        referral_applied=True,
        referred_count=1,
        review_credit_count=2,
        referral_discount=999,
        review_discount=999,
        discount_amount=999,
        final_balance=999,
    )

    breakdown = recompute_reservation(reservation)

    assert reservation.referral_discount == 20_000
    assert reservation.review_discount == 20_000
    assert reservation.discount_amount == 90_000
    assert reservation.final_balance == 410_000
    assert breakdown.final_balance == reservation.final_balance


def test_list_price_includes_selected_options():
    price = DEFAULT_POLICY.list_price_for(
        ProductTier.STANDARD,
        {"makeup_shoot": True, "usb_option": True, "paebaek_shoot": False, "drone": True},
    )
    assert price == 820_000


def test_new_year_discount_excludes_economy():
    assert DEFAULT_POLICY.new_year_discount_for(ProductTier.ECONOMY, True) == 0
    assert DEFAULT_POLICY.new_year_discount_for(ProductTier.STANDARD, True) == 50_000
    assert DEFAULT_POLICY.new_year_discount_for(ProductTier.CINEMATIC, False) == 0


def test_review_tier_table():
    economy = DEFAULT_POLICY.review_rule(ProductTier.ECONOMY)
    assert (economy.min_approved, economy.discount_units, economy.unlocks_raw_footage) == (1, 0, True)

    cinematic = DEFAULT_POLICY.review_rule(ProductTier.CINEMATIC)
    assert (cinematic.min_approved, cinematic.discount_units, cinematic.unlocks_raw_footage) == (2, 2, False)


def test_product_tier_from_korean_label():
    assert ProductTier.from_label("시네마틱형") == ProductTier.CINEMATIC
    assert ProductTier.from_label(" Economy ") == ProductTier.ECONOMY
    with pytest.raises(ValueError):
        ProductTier.from_label("premium")


def test_policy_from_settings():
    policy = DiscountPolicy.from_settings(Settings(referral_discount_amount=20_000, deposit_amount=50_000))

    assert policy.referral_amount == 20_000
    breakdown = calculate_balance(600_000, has_referral=True, policy=policy)
    assert breakdown.deposit_amount == 50_000
    assert breakdown.final_balance == 530_000
