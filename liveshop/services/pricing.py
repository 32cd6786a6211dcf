"""
Pricing and totals calculation
Pure functions shared by the API and the client stores so both sides price a cart identically
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any, Iterable, Optional, Sequence, Union

from liveshop.core.config import settings

Number = Union[Decimal, int, float, str]

MINOR_UNIT = Decimal("0.01")
ZERO = Decimal("0")

class DeliveryOption(str, Enum):
    STANDARD = "standard"
    EXPRESS = "express"

class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"

def to_decimal(value: Optional[Number]) -> Decimal:
    """Convert to Decimal without inheriting binary float noise"""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)

def money(value: Number) -> Decimal:
    """Round to the currency minor unit"""
    return to_decimal(value).quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)

@dataclass(frozen=True)
class ShippingPolicy:
    free_threshold: Decimal = Decimal("50.00")
    standard_fee: Decimal = Decimal("5.99")
    express_fee: Decimal = Decimal("12.99")

    def fee_for(self, subtotal: Decimal, option: DeliveryOption = DeliveryOption.STANDARD) -> Decimal:
        if DeliveryOption(option) == DeliveryOption.EXPRESS:
            return to_decimal(self.express_fee)
        if subtotal > to_decimal(self.free_threshold):
            return ZERO
        return to_decimal(self.standard_fee)

def default_shipping_policy() -> ShippingPolicy:
    return ShippingPolicy(
        free_threshold=settings.FREE_SHIPPING_THRESHOLD,
        standard_fee=settings.STANDARD_SHIPPING_FEE,
        express_fee=settings.EXPRESS_SHIPPING_FEE,
    )

@dataclass(frozen=True)
class Discount:
    """A promo code reduced to what the calculator needs"""
    code: str
    discount_type: DiscountType
    value: Decimal
    min_order_amount: Optional[Decimal] = None
    applicable_categories: Sequence[str] = field(default_factory=tuple)

    def applies_to(self, category: Optional[str]) -> bool:
        if not self.applicable_categories:
            return True
        return category in self.applicable_categories

@dataclass(frozen=True)
class LineItem:
    """Minimal priced line for callers without an ORM row at hand"""
    price: Decimal
    quantity: int
    category: Optional[str] = None

@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    discount_amount: Decimal
    total: Decimal

    def rounded(self) -> "Totals":
        """Components quantized for display or storage; total was already rounded once"""
        return Totals(
            subtotal=money(self.subtotal),
            shipping=money(self.shipping),
            tax=money(self.tax),
            discount_amount=money(self.discount_amount),
            total=self.total,
        )

def line_total(item: Any) -> Decimal:
    return to_decimal(item.price) * int(item.quantity)

def compute_subtotal(items: Iterable[Any]) -> Decimal:
    return sum((line_total(item) for item in items), ZERO)

def compute_discount(items: Sequence[Any], subtotal: Decimal, discount: Optional[Discount]) -> Decimal:
    """
    Discount amount for a subtotal

    Below the minimum order amount the discount is ignored (zero), never an error.
    The result is always within [0, subtotal].
    """
    if discount is None or subtotal <= ZERO:
        return ZERO

    if discount.min_order_amount is not None and subtotal < to_decimal(discount.min_order_amount):
        return ZERO

    if discount.applicable_categories:
        base = sum(
            (line_total(item) for item in items if discount.applies_to(getattr(item, "category", None))),
            ZERO
        )
    else:
        base = subtotal

    value = to_decimal(discount.value)
    if DiscountType(discount.discount_type) == DiscountType.PERCENTAGE:
        amount = base * (value / Decimal("100"))
    else:
        amount = min(value, base)

    return max(ZERO, min(amount, subtotal))

def compute_totals(
    items: Iterable[Any],
    discount: Optional[Discount] = None,
    shipping_policy: Optional[ShippingPolicy] = None,
    tax_rate: Number = Decimal("0.08"),
    delivery_option: DeliveryOption = DeliveryOption.STANDARD,
) -> Totals:
    """
    Price a set of lines

    Items only need ``price`` and ``quantity`` (``category`` is used for
    category-restricted discounts). Tax is charged after the discount and
    shipping is not taxed. Intermediate values keep full precision; only the
    total is rounded.
    """
    items = list(items)
    policy = shipping_policy or ShippingPolicy()

    subtotal = compute_subtotal(items)
    discount_amount = compute_discount(items, subtotal, discount)
    shipping = policy.fee_for(subtotal, delivery_option) if items else ZERO
    tax = (subtotal - discount_amount) * to_decimal(tax_rate)
    total = money(subtotal - discount_amount + shipping + tax)

    return Totals(
        subtotal=subtotal,
        shipping=shipping,
        tax=tax,
        discount_amount=discount_amount,
        total=total,
    )
