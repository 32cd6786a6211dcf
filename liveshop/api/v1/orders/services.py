"""
Order service layer
Handles order placement, fulfilment updates and cancellation
"""

from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func
from sqlalchemy.orm import selectinload
import logging
import random
import string
import uuid

from liveshop.core.config import settings
from liveshop.core.exceptions import (
    ConflictException,
    InsufficientInventoryException,
    InvalidStatusTransitionException,
    NotFoundException,
    OrderNotCancellableException
)
from liveshop.models import (
    Order, OrderItem, OrderStatus, OrderStatusHistory, PaymentStatus, Product, User
)
from liveshop.schemas.product import ProductSummary
from liveshop.services.coupon_service import PromoCodeService
from liveshop.services.pricing import (
    LineItem, MINOR_UNIT, compute_totals, default_shipping_policy, money
)
from .schemas import OrderCreate, OrderResponse, OrderUpdate
from .state_machine import OrderStateMachine

logger = logging.getLogger(__name__)

class OrderService:
    """Order service for business logic"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.promo_service = PromoCodeService(db)
        self.state_machine = OrderStateMachine()

    def generate_order_number(self) -> str:
        """Generate unique order number"""
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
        random_suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=4))
        return f"LS{timestamp}{random_suffix}"

    def to_response(self, order: Order) -> OrderResponse:
        response = OrderResponse.model_validate(order)
        return response.model_copy(
            update={"can_cancel": self.state_machine.is_cancellable(order.status)}
        )

    async def create_order(self, buyer: User, data: OrderCreate) -> Order:
        """
        Create an order priced from the live catalog

        Args:
            buyer: Ordering user
            data: Order creation data

        Returns:
            Created order in pending state

        Raises:
            NotFoundException: If a product is unknown or inactive
            InsufficientInventoryException: If stock is not available
            InvalidPromoCodeException: If the promo code cannot be used
            ConflictException: If the client total no longer matches (PRICE_CHANGED)
        """
        quantities: Dict[uuid.UUID, int] = {}
        for item in data.items:
            quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity

        result = await self.db.execute(
            select(Product).where(Product.id.in_(list(quantities)))
        )
        products = {product.id: product for product in result.scalars().all()}

        lines: List[LineItem] = []
        for product_id, quantity in quantities.items():
            product = products.get(product_id)
            if not product or not product.is_active:
                raise NotFoundException(f"Product {product_id} not found or inactive")

            if product.inventory < quantity:
                raise InsufficientInventoryException(product.title, product.inventory)

            lines.append(LineItem(price=product.price, quantity=quantity, category=product.category))

        # Below-minimum codes are accepted here; the calculator prices them at zero
        promo = None
        discount = None
        if data.promo_code:
            promo = await self.promo_service.validate(
                data.promo_code,
                buyer.id,
                categories=[line.category for line in lines],
                enforce_minimum=False
            )
            discount = self.promo_service.to_discount(promo)

        totals = compute_totals(
            lines,
            discount=discount,
            shipping_policy=default_shipping_policy(),
            tax_rate=settings.TAX_RATE,
            delivery_option=data.delivery_option
        )

        if data.total is not None and abs(money(data.total) - totals.total) > MINOR_UNIT:
            logger.warning(
                "Order rejected for user %s: client total %s, server total %s",
                buyer.id, data.total, totals.total
            )
            raise ConflictException(
                "Prices have changed. Please review your cart.",
                error_code="PRICE_CHANGED",
                extra={"total": float(totals.total)}
            )

        # Reserve stock atomically so concurrent orders cannot oversell
        for product_id, quantity in quantities.items():
            reserved = await self.db.execute(
                update(Product)
                .where(Product.id == product_id, Product.inventory >= quantity)
                .values(inventory=Product.inventory - quantity)
                .execution_options(synchronize_session=False)
            )
            if reserved.rowcount == 0:
                product = products[product_id]
                raise InsufficientInventoryException(product.title, product.inventory)

        rounded = totals.rounded()
        applied_promo = promo if promo is not None and totals.discount_amount > 0 else None

        order = Order(
            order_number=self.generate_order_number(),
            buyer_id=buyer.id,
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            subtotal=rounded.subtotal,
            discount=rounded.discount_amount,
            shipping=rounded.shipping,
            tax=rounded.tax,
            total=totals.total,
            promo_code=applied_promo.code if applied_promo else None,
            payment_method=data.payment_method,
            shipping_address=data.shipping_address.model_dump(),
            billing_address=data.billing_address.model_dump(),
            delivery_option=data.delivery_option.value,
            notes=data.notes,
            items=[],
            status_history=[]
        )

        for product_id, quantity in quantities.items():
            product = products[product_id]
            order.items.append(OrderItem(
                product_id=product.id,
                product_data=ProductSummary.model_validate(product).snapshot(),
                quantity=quantity,
                unit_price=product.price,
                total_price=money(product.price * quantity)
            ))

        self._record_status(order, OrderStatus.PENDING, None, "Order placed", buyer.id)

        self.db.add(order)
        await self.db.flush()

        if applied_promo:
            await self.promo_service.record_usage(
                applied_promo, buyer.id, order.id, totals.discount_amount
            )

        await self.db.commit()
        logger.info("Order %s created for user %s, total %s", order.order_number, buyer.id, order.total)

        return await self.get_order(order.id)

    async def get_order(self, order_id: uuid.UUID, user: Optional[User] = None) -> Order:
        """
        Get order details

        Args:
            order_id: Order ID
            user: When given, the order must belong to this user unless they are an admin

        Raises:
            NotFoundException: If order not found or not visible to the user
        """
        result = await self.db.execute(
            select(Order)
            .options(
                selectinload(Order.items),
                selectinload(Order.status_history)
            )
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        order = result.scalar_one_or_none()

        if not order:
            raise NotFoundException("Order not found")

        if user and order.buyer_id != user.id and not user.is_admin:
            raise NotFoundException("Order not found")

        return order

    async def list_orders(
        self,
        user: User,
        status: Optional[OrderStatus] = None,
        page: int = 1,
        limit: int = 10
    ) -> Dict[str, Any]:
        """
        List the user's orders, newest first

        Returns:
            Paginated order list
        """
        query = select(Order).where(Order.buyer_id == user.id)
        if status:
            query = query.where(Order.status == status)

        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))

        result = await self.db.execute(
            query.options(
                selectinload(Order.items),
                selectinload(Order.status_history)
            )
            .order_by(Order.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        orders = result.scalars().all()

        return {
            "items": [self.to_response(order) for order in orders],
            "total": total,
            "page": page,
            "limit": limit,
            "pages": (total + limit - 1) // limit
        }

    def _record_status(
        self,
        order: Order,
        new_status: OrderStatus,
        previous: Optional[OrderStatus],
        reason: Optional[str],
        changed_by: Optional[uuid.UUID]
    ) -> None:
        order.status_history.append(OrderStatusHistory(
            status=new_status,
            previous_status=previous,
            reason=reason,
            changed_by=changed_by
        ))

    def apply_status(
        self,
        order: Order,
        new_status: OrderStatus,
        changed_by: Optional[uuid.UUID],
        reason: Optional[str] = None
    ) -> None:
        """
        Move an order to a new status through the state machine

        Raises:
            InvalidStatusTransitionException: If the transition is not allowed
        """
        current = OrderStatus(order.status)
        if not self.state_machine.can_transition(current, new_status):
            raise InvalidStatusTransitionException(current.value, new_status.value)

        now = datetime.now(timezone.utc)
        order.status = new_status

        if new_status == OrderStatus.CONFIRMED:
            order.confirmed_at = now
        elif new_status == OrderStatus.DELIVERED:
            order.delivered_at = now
            if order.payment_method == "cod" and order.payment_status == PaymentStatus.PENDING:
                order.payment_status = PaymentStatus.COMPLETED
        elif new_status == OrderStatus.CANCELLED:
            order.cancelled_at = now

        self._record_status(order, new_status, current, reason, changed_by)

    async def _restore_inventory(self, order: Order) -> None:
        for item in order.items:
            await self.db.execute(
                update(Product)
                .where(Product.id == item.product_id)
                .values(inventory=Product.inventory + item.quantity)
                .execution_options(synchronize_session=False)
            )

    async def update_order(self, order_id: uuid.UUID, data: OrderUpdate, admin: User) -> Order:
        """
        Administrative update of status, tracking and notes

        Terminal orders accept notes and tracking only.
        """
        order = await self.get_order(order_id)

        if data.status is not None and data.status != order.status:
            self.apply_status(order, data.status, admin.id, data.reason)
            if data.status == OrderStatus.CANCELLED:
                await self._restore_inventory(order)
            logger.info("Order %s moved to %s by %s", order.order_number, data.status.value, admin.id)

        if data.tracking_number is not None:
            order.tracking_number = data.tracking_number
        if data.carrier is not None:
            order.carrier = data.carrier
        if data.admin_notes is not None:
            order.admin_notes = data.admin_notes

        await self.db.commit()
        return await self.get_order(order_id)

    async def cancel_order(self, order_id: uuid.UUID, user: User, reason: Optional[str] = None) -> Order:
        """
        Cancel an order on behalf of its buyer and return its stock

        Raises:
            OrderNotCancellableException: If the order has progressed too far
        """
        order = await self.get_order(order_id, user)

        if not self.state_machine.is_cancellable(OrderStatus(order.status)):
            logger.warning("Cancel rejected for order %s in status %s", order.order_number, order.status)
            raise OrderNotCancellableException()

        self.apply_status(order, OrderStatus.CANCELLED, user.id, reason or "Cancelled by customer")
        await self._restore_inventory(order)

        await self.db.commit()
        logger.info("Order %s cancelled by buyer", order.order_number)
        return await self.get_order(order_id)
