"""Tests for the shared totals calculator."""

from decimal import Decimal

import pytest

from liveshop.services.pricing import (
    DeliveryOption,
    Discount,
    DiscountType,
    LineItem,
    ShippingPolicy,
    compute_discount,
    compute_subtotal,
    compute_totals,
    money,
    to_decimal,
)

WELCOME10 = Discount(
    code="WELCOME10",
    discount_type=DiscountType.PERCENTAGE,
    value=Decimal("10"),
    min_order_amount=Decimal("50"),
)

def earbuds(quantity=1):
    return LineItem(price=Decimal("29.99"), quantity=quantity, category="electronics")

def tee(quantity=1):
    return LineItem(price=Decimal("12.50"), quantity=quantity, category="fashion")

def test_to_decimal_avoids_float_noise():
    assert to_decimal(29.99) == Decimal("29.99")
    assert to_decimal(None) == Decimal("0")
    assert to_decimal("5") == Decimal("5")

def test_money_rounds_half_up():
    assert money(Decimal("0.005")) == Decimal("0.01")
    assert money(Decimal("64.7784")) == Decimal("64.78")
    assert money(Decimal("2.345")) == Decimal("2.35")

def test_subtotal_sums_price_times_quantity():
    assert compute_subtotal([earbuds(2)]) == Decimal("59.98")
    assert compute_subtotal([earbuds(1), tee(2)]) == Decimal("54.99")
    assert compute_subtotal([]) == Decimal("0")

def test_percentage_discount_keeps_full_precision():
    items = [earbuds(2)]
    assert compute_discount(items, Decimal("59.98"), WELCOME10) == Decimal("5.998")

def test_discount_below_minimum_is_ignored():
    items = [LineItem(price=Decimal("40"), quantity=1)]
    assert compute_discount(items, Decimal("40"), WELCOME10) == Decimal("0")

def test_discount_at_exact_minimum_applies():
    items = [LineItem(price=Decimal("50"), quantity=1)]
    assert compute_discount(items, Decimal("50"), WELCOME10) == Decimal("5.0")

def test_fixed_discount_is_clamped_to_subtotal():
    big = Discount(code="BIG", discount_type=DiscountType.FIXED, value=Decimal("100"))
    items = [LineItem(price=Decimal("30"), quantity=1)]

    assert compute_discount(items, Decimal("30"), big) == Decimal("30")

    totals = compute_totals(items, discount=big)
    assert totals.discount_amount == Decimal("30")
    assert totals.tax == Decimal("0")
    assert totals.total == Decimal("5.99")

def test_category_discount_uses_matching_lines_only():
    gadgets = Discount(
        code="GADGETS",
        discount_type=DiscountType.PERCENTAGE,
        value=Decimal("20"),
        applicable_categories=("electronics",),
    )
    items = [earbuds(1), tee(2)]
    assert compute_discount(items, compute_subtotal(items), gadgets) == Decimal("5.998")

    no_match = [tee(2)]
    assert compute_discount(no_match, compute_subtotal(no_match), gadgets) == Decimal("0")

def test_no_discount_for_empty_subtotal():
    assert compute_discount([], Decimal("0"), WELCOME10) == Decimal("0")

@pytest.mark.parametrize(
    "subtotal,option,expected",
    [
        (Decimal("50.00"), DeliveryOption.STANDARD, Decimal("5.99")),
        (Decimal("50.01"), DeliveryOption.STANDARD, Decimal("0")),
        (Decimal("10.00"), DeliveryOption.STANDARD, Decimal("5.99")),
        (Decimal("80.00"), DeliveryOption.EXPRESS, Decimal("12.99")),
    ],
)
def test_shipping_policy(subtotal, option, expected):
    assert ShippingPolicy().fee_for(subtotal, option) == expected

def test_totals_for_two_earbuds():
    totals = compute_totals([earbuds(2)])

    assert totals.subtotal == Decimal("59.98")
    assert totals.shipping == Decimal("0")
    assert totals.tax == Decimal("4.7984")
    assert totals.total == Decimal("64.78")

def test_tax_is_charged_after_discount():
    totals = compute_totals([earbuds(2)], discount=WELCOME10)

    assert totals.discount_amount == Decimal("5.998")
    assert totals.tax == Decimal("53.982") * Decimal("0.08")
    assert totals.total == Decimal("58.30")

def test_shipping_is_not_taxed():
    totals = compute_totals([tee(1)])

    assert totals.shipping == Decimal("5.99")
    assert totals.tax == Decimal("1.0000")
    assert totals.total == Decimal("19.49")

def test_only_total_is_rounded():
    fifteen = Discount(code="P15", discount_type=DiscountType.PERCENTAGE, value=Decimal("15"))
    totals = compute_totals([LineItem(price=Decimal("10.30"), quantity=1)], discount=fifteen)

    # 8.755 + 5.99 + 0.7004 rounded once
    assert totals.total == Decimal("15.45")

    rounded = totals.rounded()
    component_sum = rounded.subtotal - rounded.discount_amount + rounded.shipping + rounded.tax
    assert component_sum == Decimal("15.44")
    assert abs(component_sum - rounded.total) <= Decimal("0.01")

def test_totals_identity_holds_before_rounding():
    items = [earbuds(3), tee(1)]
    totals = compute_totals(items, discount=WELCOME10, delivery_option=DeliveryOption.EXPRESS)

    expected = totals.subtotal - totals.discount_amount + totals.shipping + totals.tax
    assert totals.total == money(expected)
    assert totals.shipping == Decimal("12.99")

def test_empty_cart_totals_are_zero():
    totals = compute_totals([], delivery_option=DeliveryOption.EXPRESS)

    assert totals.subtotal == Decimal("0")
    assert totals.shipping == Decimal("0")
    assert totals.total == Decimal("0.00")

def test_custom_policy_and_rate():
    policy = ShippingPolicy(free_threshold=Decimal("100"), standard_fee=Decimal("4"), express_fee=Decimal("9"))
    totals = compute_totals([earbuds(2)], shipping_policy=policy, tax_rate=Decimal("0.10"))

    assert totals.shipping == Decimal("4")
    assert totals.total == money(Decimal("59.98") + Decimal("4") + Decimal("5.998"))
