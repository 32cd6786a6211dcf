"""
Order schemas for request/response validation
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from decimal import Decimal
import uuid

from liveshop.models.order import OrderStatus, PaymentStatus
from liveshop.schemas.address import AddressInfo
from liveshop.schemas.base import BaseSchema, Money
from liveshop.services.pricing import DeliveryOption

class OrderItemCreate(BaseModel):
    """Schema for creating order item"""
    product_id: uuid.UUID
    quantity: int = Field(..., gt=0)

class OrderCreate(BaseModel):
    """Schema for creating order"""
    items: List[OrderItemCreate] = Field(..., min_length=1)
    shipping_address: AddressInfo
    billing_address: Optional[AddressInfo] = None
    delivery_option: DeliveryOption = DeliveryOption.STANDARD
    payment_method: str = Field("razorpay", pattern="^(razorpay|cod|upi|card)$")
    promo_code: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = Field(None, max_length=500)

    # Total the client displayed; a mismatch means its prices are stale
    total: Optional[Decimal] = Field(None, ge=0)

    @model_validator(mode="after")
    def default_billing_address(self):
        if self.billing_address is None:
            self.billing_address = self.shipping_address
        return self

class OrderUpdate(BaseModel):
    """Administrative order update"""
    status: Optional[OrderStatus] = None
    reason: Optional[str] = Field(None, max_length=500)
    tracking_number: Optional[str] = Field(None, max_length=100)
    carrier: Optional[str] = Field(None, max_length=100)
    admin_notes: Optional[str] = Field(None, max_length=2000)

class OrderCancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)

class OrderItemResponse(BaseSchema):
    id: uuid.UUID
    product_id: uuid.UUID
    product_data: Dict[str, Any]
    quantity: int
    unit_price: Money
    total_price: Money

class OrderStatusHistoryResponse(BaseSchema):
    status: OrderStatus
    previous_status: Optional[OrderStatus] = None
    reason: Optional[str] = None
    created_at: datetime

class OrderResponse(BaseSchema):
    """Schema for order response"""
    id: uuid.UUID
    order_number: str
    buyer_id: uuid.UUID

    # Amounts
    subtotal: Money
    discount: Money
    shipping: Money
    tax: Money
    total: Money
    promo_code: Optional[str] = None

    # Status
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: str
    payment_reference: Optional[str] = None

    # Addresses
    shipping_address: Dict[str, Any]
    billing_address: Optional[Dict[str, Any]] = None

    # Delivery
    delivery_option: str
    tracking_number: Optional[str] = None
    carrier: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    notes: Optional[str] = None
    admin_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    items: List[OrderItemResponse] = []
    status_history: List[OrderStatusHistoryResponse] = []
    can_cancel: bool = False

class OrderListResponse(BaseSchema):
    """Schema for paginated order list"""
    items: List[OrderResponse]
    total: int
    page: int
    limit: int
    pages: int
