"""
Checkout orchestrator

Steps: address, review, payment, then success or failed. An empty cart never
gets past the redirect guard.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional
import logging

from liveshop.schemas.address import AddressInfo, address_errors
from liveshop.services.pricing import DeliveryOption, Discount, DiscountType, Totals, to_decimal
from .cart_store import CartStore
from .errors import (
    CheckoutStateError,
    EmptyCart,
    OrderCreationFailed,
    PaymentFailed,
    ShopError,
    ValidationError,
)
from .http import ShopApiClient
from .notifications import Notifier

logger = logging.getLogger(__name__)

class CheckoutStep(str, Enum):
    REDIRECT_TO_CART = "redirect_to_cart"
    ADDRESS = "address"
    REVIEW = "review"
    PAYMENT = "payment"
    SUCCESS = "success"
    FAILED = "failed"

@dataclass(frozen=True)
class PaymentResult:
    success: bool
    reference: Optional[str] = None
    message: str = ""

class PaymentGateway(ABC):
    """External payment collaborator"""

    @abstractmethod
    async def pay(self, order_id: str, amount: Decimal) -> PaymentResult:
        """Collect ``amount`` for the order; raise ShopError or return a failed result on decline"""

Authorize = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]

class ApiPaymentGateway(PaymentGateway):
    """
    Pays through the server's Razorpay endpoints

    ``authorize`` receives the gateway order (id, amount, currency, key) and
    returns the ``razorpay_payment_id`` and ``razorpay_signature`` produced by
    the hosted checkout.
    """

    def __init__(self, api: ShopApiClient, authorize: Authorize):
        self.api = api
        self.authorize = authorize

    async def pay(self, order_id: str, amount: Decimal) -> PaymentResult:
        session = await self.api.create_payment(order_id)
        response = await self.authorize(session)

        await self.api.verify_payment(
            order_id,
            razorpay_order_id=response.get("razorpay_order_id", session["razorpay_order_id"]),
            razorpay_payment_id=response["razorpay_payment_id"],
            razorpay_signature=response["razorpay_signature"],
        )
        return PaymentResult(success=True, reference=response["razorpay_payment_id"])

class CheckoutOrchestrator:
    """Drives one checkout attempt over a cart"""

    def __init__(
        self,
        cart: CartStore,
        api: ShopApiClient,
        notifier: Notifier,
        gateway: PaymentGateway,
        payment_method: str = "razorpay",
    ):
        self.cart = cart
        self.api = api
        self.notifier = notifier
        self.gateway = gateway
        self.payment_method = payment_method

        self.step = CheckoutStep.REDIRECT_TO_CART
        self.address: Dict[str, Any] = {}
        self.address_errors: Dict[str, str] = {}
        self.delivery_option = DeliveryOption.STANDARD
        self.discount: Optional[Discount] = None
        self.notes: Optional[str] = None

        self.order: Optional[Dict[str, Any]] = None
        self.confirmation_url: Optional[str] = None
        self.failure_reason: Optional[str] = None

    @property
    def totals(self) -> Totals:
        """Always priced from the cart as it is now"""
        return self.cart.totals(discount=self.discount, delivery_option=self.delivery_option)

    @property
    def is_finished(self) -> bool:
        return self.step in (CheckoutStep.SUCCESS, CheckoutStep.FAILED)

    def _require(self, *steps: CheckoutStep) -> None:
        if self.step not in steps:
            raise CheckoutStateError(
                f"Not allowed during the {self.step.value} step"
            )

    def _guard_cart(self) -> None:
        if self.cart.is_empty:
            self.step = CheckoutStep.REDIRECT_TO_CART
            self.notifier.error("Your cart is empty", "Add items before checking out", code=EmptyCart.code)
            raise EmptyCart("Your cart is empty")

    def begin(self) -> CheckoutStep:
        """Enter checkout; an empty cart stays at the redirect guard"""
        self._require(CheckoutStep.REDIRECT_TO_CART)
        self._guard_cart()
        self.step = CheckoutStep.ADDRESS
        return self.step

    # Address

    def update_address(self, **fields: Any) -> Dict[str, str]:
        """Merge field changes and re-validate; returns the current errors"""
        self._require(CheckoutStep.ADDRESS)
        self.address.update(fields)
        self.address_errors = address_errors(self.address)
        return self.address_errors

    def set_delivery_option(self, option: DeliveryOption) -> Totals:
        self._require(CheckoutStep.ADDRESS, CheckoutStep.REVIEW)
        self.delivery_option = DeliveryOption(option)
        return self.totals

    def proceed_to_review(self) -> CheckoutStep:
        self._require(CheckoutStep.ADDRESS)
        self._guard_cart()

        self.address_errors = address_errors(self.address)
        if self.address_errors:
            self.notifier.error(
                "Check your address",
                "Please fix the highlighted fields",
                code=ValidationError.code
            )
            raise ValidationError("Invalid shipping address", fields=dict(self.address_errors))

        self.step = CheckoutStep.REVIEW
        return self.step

    def back_to_address(self) -> CheckoutStep:
        self._require(CheckoutStep.REVIEW)
        self.step = CheckoutStep.ADDRESS
        return self.step

    # Promo codes

    async def apply_promo_code(self, code: str) -> Discount:
        """Validate a code with the server and price it into the totals"""
        self._require(CheckoutStep.ADDRESS, CheckoutStep.REVIEW)
        categories = sorted({line.category for line in self.cart.lines if line.category})

        try:
            data = await self.api.validate_promo_code(code, self.cart.subtotal, categories)
        except ShopError as e:
            self.notifier.error("Promo code not applied", e.message, code=e.code)
            raise

        min_order = data.get("min_order_amount")
        self.discount = Discount(
            code=data["code"],
            discount_type=DiscountType(data["discount_type"]),
            value=to_decimal(data["value"]),
            min_order_amount=to_decimal(min_order) if min_order is not None else None,
            applicable_categories=tuple(data.get("applicable_categories") or ()),
        )
        self.notifier.success("Promo code applied", f"{self.discount.code} applied to your order")
        return self.discount

    def remove_promo_code(self) -> None:
        self._require(CheckoutStep.ADDRESS, CheckoutStep.REVIEW)
        self.discount = None

    # Order and payment

    def _order_payload(self, totals: Totals) -> Dict[str, Any]:
        items: List[Dict[str, Any]] = [
            {"product_id": line.product_id, "quantity": line.quantity}
            for line in self.cart.lines
        ]
        return {
            "items": items,
            "shipping_address": AddressInfo.model_validate(self.address).model_dump(),
            "delivery_option": self.delivery_option.value,
            "promo_code": self.discount.code if self.discount else None,
            "notes": self.notes,
            "payment_method": self.payment_method,
            "total": str(totals.total),
        }

    async def place_order(self) -> Dict[str, Any]:
        """
        Create the pending order on the server

        On failure the flow stays in review and OrderCreationFailed is raised.
        """
        self._require(CheckoutStep.REVIEW)
        self._guard_cart()

        try:
            order = await self.api.create_order(self._order_payload(self.totals))
        except ShopError as e:
            logger.warning("Order creation failed: %s", e)
            self.notifier.error("Could not place order", e.message, code=OrderCreationFailed.code)
            raise OrderCreationFailed(e.message, status_code=e.status_code, payload=e.payload) from e

        self.order = order
        self.step = CheckoutStep.PAYMENT
        logger.info("Order %s created, awaiting payment", order.get("order_number", order["id"]))
        return order

    async def pay(self) -> PaymentResult:
        """
        Hand the order to the payment gateway

        Success clears the cart. A failure returns to the address step with
        the address kept, and raises PaymentFailed.
        """
        self._require(CheckoutStep.PAYMENT)
        order_id = str(self.order["id"])
        amount = to_decimal(self.order["total"])

        try:
            result = await self.gateway.pay(order_id, amount)
        except ShopError as e:
            result = PaymentResult(success=False, message=e.message)

        if not result.success:
            self.step = CheckoutStep.ADDRESS
            self.failure_reason = result.message or "Payment was not completed"
            logger.warning("Payment failed for order %s: %s", order_id, self.failure_reason)
            self.notifier.error("Payment failed", self.failure_reason, code=PaymentFailed.code)
            raise PaymentFailed(self.failure_reason)

        self.step = CheckoutStep.SUCCESS
        self.confirmation_url = f"/orders/{order_id}?success=true"

        # Payment went through; a cart the server keeps is picked up on the next refresh
        async with self.cart.locks.hold_all():
            try:
                await self.api.clear_cart()
            except ShopError as e:
                logger.warning("Cart not cleared after order %s: %s", order_id, e)
            self.cart.reset()

        self.notifier.success("Order placed successfully!", f"Order {self.order.get('order_number', order_id)} confirmed")
        return result

    def abort(self, reason: str = "Checkout cancelled") -> CheckoutStep:
        """End this checkout attempt"""
        if self.is_finished:
            raise CheckoutStateError(f"Checkout already {self.step.value}")

        self.step = CheckoutStep.FAILED
        self.failure_reason = reason
        self.notifier.error("Checkout ended", reason, code="checkout_failed")
        return self.step
