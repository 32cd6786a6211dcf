"""Order model with status history"""

from sqlalchemy import Column, String, Numeric, Integer, Enum, ForeignKey, Index, Text, DateTime, JSON, Uuid
from sqlalchemy.orm import relationship
import enum

from .base import Base, TimestampedModel, UUIDModel

class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"

class Order(Base, TimestampedModel, UUIDModel):
    """Order placed at checkout"""

    __tablename__ = "orders"

    # Order identification
    order_number = Column(String(50), unique=True, nullable=False, index=True)

    # Parties
    buyer_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)

    # Status
    status = Column(Enum(OrderStatus), default=OrderStatus.PENDING, nullable=False, index=True)
    payment_status = Column(Enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False)

    # Amounts; total == subtotal - discount + shipping + tax within one minor unit
    subtotal = Column(Numeric(10, 2), nullable=False)
    discount = Column(Numeric(10, 2), nullable=False, default=0)
    shipping = Column(Numeric(10, 2), nullable=False, default=0)
    tax = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False)
    promo_code = Column(String(50), nullable=True)

    # Payment
    payment_method = Column(String(50), nullable=False)
    payment_reference = Column(String(200), nullable=True)
    gateway_order_id = Column(String(200), nullable=True)

    # Addresses, denormalized snapshots
    shipping_address = Column(JSON, nullable=False)
    billing_address = Column(JSON, nullable=True)

    # Delivery
    delivery_option = Column(String(50), nullable=False, default="standard")
    tracking_number = Column(String(100), nullable=True)
    carrier = Column(String(100), nullable=True)

    # Timestamps
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    # Additional info
    notes = Column(Text, nullable=True)
    admin_notes = Column(Text, nullable=True)

    # Relationships
    buyer = relationship("User", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    status_history = relationship(
        "OrderStatusHistory",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderStatusHistory.created_at"
    )

    # Indexes
    __table_args__ = (
        Index("idx_orders_buyer_status", "buyer_id", "status"),
        Index("idx_orders_created_status", "created_at", "status"),
        Index("idx_orders_payment_status", "payment_status"),
    )

class OrderItem(Base, TimestampedModel, UUIDModel):
    """Individual items within an order"""

    __tablename__ = "order_items"

    order_id = Column(Uuid(as_uuid=True), ForeignKey("orders.id"), nullable=False)

    # No foreign key: the snapshot must outlive catalog edits and deletes
    product_id = Column(Uuid(as_uuid=True), nullable=False)

    # Snapshot of title, image, category and attributes at order time
    product_data = Column(JSON, nullable=False)

    # Quantities and pricing
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)

    # Relationships
    order = relationship("Order", back_populates="items")

    __table_args__ = (
        Index("idx_order_items_order_product", "order_id", "product_id"),
    )

class OrderStatusHistory(Base, TimestampedModel, UUIDModel):
    """Track order status changes"""

    __tablename__ = "order_status_history"

    order_id = Column(Uuid(as_uuid=True), ForeignKey("orders.id"), nullable=False)
    status = Column(Enum(OrderStatus), nullable=False)
    previous_status = Column(Enum(OrderStatus), nullable=True)
    reason = Column(String(500), nullable=True)
    changed_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)

    # Relationships
    order = relationship("Order", back_populates="status_history")

    __table_args__ = (
        Index("idx_order_status_history_order", "order_id"),
    )
