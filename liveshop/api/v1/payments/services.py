"""
Payment service layer
Connects orders to the payment gateway
"""

from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
import logging
import uuid

from liveshop.core.config import settings
from liveshop.core.exceptions import BadRequestException, InvalidPaymentException
from liveshop.models import Order, OrderStatus, PaymentStatus, User
from liveshop.services.pricing import money
from liveshop.api.v1.orders.services import OrderService
from .razorpay_client import RazorpayClient
from .schemas import PaymentCreateResponse, PaymentVerifyRequest

logger = logging.getLogger(__name__)

class PaymentService:
    """Payment service"""

    def __init__(self, db: AsyncSession, gateway: RazorpayClient):
        self.db = db
        self.gateway = gateway
        self.order_service = OrderService(db)

    async def _payable_order(self, order_id: uuid.UUID, user: User) -> Order:
        order = await self.order_service.get_order(order_id, user)

        if order.payment_status == PaymentStatus.COMPLETED:
            raise BadRequestException("Order is already paid", error_code="ALREADY_PAID")

        if order.status == OrderStatus.CANCELLED:
            raise BadRequestException("Order has been cancelled", error_code="ORDER_CANCELLED")

        return order

    async def create_payment(self, order_id: uuid.UUID, user: User) -> PaymentCreateResponse:
        """
        Open a gateway order for the order total

        Returns:
            Gateway order id and amount in minor units for the checkout widget
        """
        order = await self._payable_order(order_id, user)
        amount = int(money(order.total) * Decimal("100"))

        gateway_order = self.gateway.create_order(
            amount=amount,
            currency=settings.CURRENCY,
            receipt=order.order_number,
            notes={"order_id": str(order.id)}
        )

        order.gateway_order_id = gateway_order["id"]
        await self.db.commit()
        logger.info("Payment opened for order %s: %s", order.order_number, gateway_order["id"])

        return PaymentCreateResponse(
            order_id=order.id,
            razorpay_order_id=gateway_order["id"],
            amount=amount,
            currency=settings.CURRENCY,
            key=self.gateway.key_id
        )

    async def verify_payment(self, data: PaymentVerifyRequest, user: User) -> Order:
        """
        Verify the gateway signature and confirm the order

        Raises:
            InvalidPaymentException: If the signature does not match; the order is marked failed
        """
        order = await self._payable_order(data.order_id, user)

        valid = (
            (order.gateway_order_id is None or order.gateway_order_id == data.razorpay_order_id)
            and self.gateway.verify_payment_signature(
                data.razorpay_order_id,
                data.razorpay_payment_id,
                data.razorpay_signature
            )
        )

        if not valid:
            order.payment_status = PaymentStatus.FAILED
            await self.db.commit()
            logger.warning("Payment verification failed for order %s", order.order_number)
            raise InvalidPaymentException("Payment verification failed")

        order.payment_status = PaymentStatus.COMPLETED
        order.payment_reference = data.razorpay_payment_id
        order.gateway_order_id = data.razorpay_order_id
        if order.status == OrderStatus.PENDING:
            self.order_service.apply_status(order, OrderStatus.CONFIRMED, user.id, "Payment received")

        await self.db.commit()
        logger.info("Payment verified for order %s", order.order_number)
        return await self.order_service.get_order(order.id)
