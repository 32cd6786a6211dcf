"""Tests for the checkout orchestrator."""

from decimal import Decimal

import pytest

from liveshop.client import (
    ApiPaymentGateway,
    CheckoutOrchestrator,
    CheckoutStateError,
    CheckoutStep,
    EmptyCart,
    NotificationKind,
    OrderCreationFailed,
    PaymentFailed,
    PaymentGateway,
    PaymentResult,
    ServerError,
    ShopSession,
    ValidationError,
)
from liveshop.services.pricing import DeliveryOption

ERROR = NotificationKind.ERROR

class DecliningGateway(PaymentGateway):
    def __init__(self, message="Card declined"):
        self.message = message
        self.calls = []

    async def pay(self, order_id, amount):
        self.calls.append((order_id, amount))
        return PaymentResult(success=False, message=self.message)

@pytest.fixture
def session(make_api, user):
    return ShopSession(make_api(user))

@pytest.fixture
def razorpay(session, signer):
    """Gateway that completes the hosted checkout with a valid signature."""
    async def authorize(payment):
        return {
            "razorpay_payment_id": "pay_test_1",
            "razorpay_signature": signer(payment["razorpay_order_id"], "pay_test_1"),
        }

    return ApiPaymentGateway(session.api, authorize)

async def at_review(session, gateway, address):
    checkout = session.checkout(gateway)
    checkout.begin()
    checkout.update_address(**address)
    checkout.proceed_to_review()
    return checkout

@pytest.mark.asyncio
async def test_empty_cart_never_reaches_address(session, razorpay):
    checkout = session.checkout(razorpay)

    with pytest.raises(EmptyCart):
        checkout.begin()

    assert checkout.step == CheckoutStep.REDIRECT_TO_CART
    assert session.notifier.count(ERROR, code="empty_cart") == 1

    with pytest.raises(CheckoutStateError):
        checkout.update_address(full_name="Asha")
    with pytest.raises(CheckoutStateError):
        checkout.proceed_to_review()

    assert checkout.step == CheckoutStep.REDIRECT_TO_CART

@pytest.mark.asyncio
async def test_successful_checkout(session, razorpay, products, promo_codes, address):
    await session.cart.add_item(products["sku-1"].id, 2)
    checkout = await at_review(session, razorpay, address)

    await checkout.apply_promo_code("WELCOME10")
    assert checkout.totals.discount_amount == Decimal("5.998")
    assert checkout.totals.total == Decimal("58.30")

    order = await checkout.place_order()
    assert checkout.step == CheckoutStep.PAYMENT
    assert order["total"] == 58.3
    assert order["promo_code"] == "WELCOME10"

    result = await checkout.pay()

    assert result.success is True
    assert result.reference == "pay_test_1"
    assert checkout.step == CheckoutStep.SUCCESS
    assert checkout.confirmation_url == f"/orders/{order['id']}?success=true"
    assert session.cart.is_empty
    assert (await session.api.get_cart())["items"] == []

    stored = await session.api.get_order(order["id"])
    assert stored["status"] == "confirmed"
    assert stored["payment_status"] == "completed"

    assert session.notifier.history[-1].title == "Order placed successfully!"

@pytest.mark.asyncio
async def test_address_errors_block_review(session, razorpay, products, address):
    await session.cart.add_item(products["sku-2"].id, 1)
    checkout = session.checkout(razorpay)
    checkout.begin()

    errors = checkout.update_address(**dict(address, phone="12345", postal_code=""))
    assert errors == {
        "phone": "Enter a valid 10-digit phone number",
        "postal_code": "Enter a valid 6-digit postal code",
    }

    with pytest.raises(ValidationError) as exc_info:
        checkout.proceed_to_review()

    assert set(exc_info.value.fields) == {"phone", "postal_code"}
    assert checkout.step == CheckoutStep.ADDRESS
    assert session.notifier.count(ERROR, code="validation_error") == 1

    assert checkout.update_address(phone="9876543210", postal_code="560001") == {}
    assert checkout.proceed_to_review() == CheckoutStep.REVIEW

@pytest.mark.asyncio
async def test_missing_address_fields(session, razorpay, products):
    await session.cart.add_item(products["sku-2"].id, 1)
    checkout = session.checkout(razorpay)
    checkout.begin()

    errors = checkout.update_address(full_name="  ")

    assert errors["full_name"] == "Full name is required"
    assert errors["city"] == "City is required"

@pytest.mark.asyncio
async def test_delivery_option_changes_totals(session, razorpay, products, address):
    await session.cart.add_item(products["sku-2"].id, 1)
    checkout = await at_review(session, razorpay, address)

    assert checkout.totals.shipping == Decimal("5.99")
    totals = checkout.set_delivery_option(DeliveryOption.EXPRESS)
    assert totals.shipping == Decimal("12.99")

    order = await checkout.place_order()
    assert order["delivery_option"] == "express"
    assert order["shipping"] == 12.99

@pytest.mark.asyncio
async def test_payment_failure_returns_to_address(session, products, address):
    await session.cart.add_item(products["sku-1"].id, 1)
    gateway = DecliningGateway()
    checkout = await at_review(session, gateway, address)
    order = await checkout.place_order()

    with pytest.raises(PaymentFailed):
        await checkout.pay()

    assert gateway.calls == [(order["id"], Decimal("38.38"))]
    assert checkout.step == CheckoutStep.ADDRESS
    assert checkout.failure_reason == "Card declined"
    assert checkout.address["full_name"] == address["full_name"]
    assert not session.cart.is_empty
    assert session.notifier.count(ERROR, code="payment_failed") == 1

    # The address is kept, so review is one step away
    assert checkout.proceed_to_review() == CheckoutStep.REVIEW

@pytest.mark.asyncio
async def test_rejected_signature_fails_payment(session, products, address):
    async def authorize(payment):
        return {"razorpay_payment_id": "pay_x", "razorpay_signature": "forged"}

    await session.cart.add_item(products["sku-1"].id, 1)
    checkout = await at_review(session, ApiPaymentGateway(session.api, authorize), address)
    order = await checkout.place_order()

    with pytest.raises(PaymentFailed):
        await checkout.pay()

    assert checkout.step == CheckoutStep.ADDRESS
    assert checkout.failure_reason == "Payment verification failed"
    stored = await session.api.get_order(order["id"])
    assert stored["payment_status"] == "failed"

@pytest.mark.asyncio
async def test_order_creation_failure_stays_in_review(session, razorpay, products, address, set_price):
    await session.cart.add_item(products["sku-1"].id, 2)
    checkout = await at_review(session, razorpay, address)
    await set_price(products["sku-1"], "35.00")

    with pytest.raises(OrderCreationFailed) as exc_info:
        await checkout.place_order()

    assert exc_info.value.status_code == 409
    assert exc_info.value.payload["code"] == "PRICE_CHANGED"
    assert checkout.step == CheckoutStep.REVIEW
    assert checkout.order is None
    assert session.notifier.count(ERROR, code="order_creation_failed") == 1

@pytest.mark.asyncio
async def test_invalid_promo_code_is_not_applied(session, razorpay, products, promo_codes, address):
    await session.cart.add_item(products["sku-2"].id, 1)
    checkout = await at_review(session, razorpay, address)

    with pytest.raises(ValidationError):
        await checkout.apply_promo_code("WELCOME10")

    assert checkout.discount is None
    assert session.notifier.count(ERROR, code="validation_error") == 1

@pytest.mark.asyncio
async def test_remove_promo_code(session, razorpay, products, promo_codes, address):
    await session.cart.add_item(products["sku-2"].id, 1)
    checkout = await at_review(session, razorpay, address)

    await checkout.apply_promo_code("FLAT5")
    assert checkout.totals.discount_amount == Decimal("5")

    checkout.remove_promo_code()
    assert checkout.totals.discount_amount == Decimal("0")

@pytest.mark.asyncio
async def test_back_to_address(session, razorpay, products, address):
    await session.cart.add_item(products["sku-2"].id, 1)
    checkout = await at_review(session, razorpay, address)

    assert checkout.back_to_address() == CheckoutStep.ADDRESS
    with pytest.raises(CheckoutStateError):
        await checkout.place_order()

@pytest.mark.asyncio
async def test_abort(session, razorpay, products):
    await session.cart.add_item(products["sku-2"].id, 1)
    checkout = session.checkout(razorpay)
    checkout.begin()

    assert checkout.abort("Payment window closed") == CheckoutStep.FAILED
    assert checkout.is_finished
    assert checkout.failure_reason == "Payment window closed"
    assert session.notifier.count(ERROR, code="checkout_failed") == 1

    with pytest.raises(CheckoutStateError):
        checkout.abort()

@pytest.mark.asyncio
async def test_orchestrators_share_nothing(make_api, user, other_user, products, razorpay):
    first = ShopSession(make_api(user))
    second = ShopSession(make_api(other_user))
    await first.cart.add_item(products["sku-2"].id, 1)

    assert isinstance(first.checkout(razorpay), CheckoutOrchestrator)
    with pytest.raises(EmptyCart):
        second.checkout(razorpay).begin()

@pytest.mark.asyncio
async def test_cart_clear_failure_after_payment_is_silent(session, razorpay, products, address, monkeypatch):
    await session.cart.add_item(products["sku-2"].id, 1)
    checkout = await at_review(session, razorpay, address)
    await checkout.place_order()

    async def failing_clear():
        raise ServerError("Boom", status_code=500)

    monkeypatch.setattr(session.api, "clear_cart", failing_clear)
    errors_before = session.notifier.count(ERROR)

    result = await checkout.pay()

    assert result.success is True
    assert checkout.step == CheckoutStep.SUCCESS
    assert session.cart.is_empty
    assert session.notifier.count(ERROR) == errors_before
    assert session.notifier.history[-1].title == "Order placed successfully!"
