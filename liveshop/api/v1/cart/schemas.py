"""
Cart schemas for request/response validation
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from decimal import Decimal
import uuid

from liveshop.schemas.base import BaseSchema, Money

class CartItemCreate(BaseModel):
    """Schema for adding item to cart"""
    product_id: uuid.UUID
    quantity: int = Field(1, ge=1)

class CartItemUpdate(BaseModel):
    """Schema for updating cart item"""
    quantity: int = Field(..., ge=1)

class CartLineResponse(BaseSchema):
    """Cart line joined with its live product"""
    id: uuid.UUID
    product_id: uuid.UUID
    quantity: int
    price: Money  # Snapshot taken when the line was created
    line_total: Money

    # Live product fields
    title: str
    image: Optional[str] = None
    category: str
    inventory: int
    in_stock: bool
    current_price: Money

class CartResponse(BaseSchema):
    """Complete cart with calculations"""
    id: Optional[uuid.UUID] = None
    items: List[CartLineResponse] = []
    item_count: int = 0
    subtotal: Money = Decimal("0")

class CartAddResponse(BaseSchema):
    """Result of an add, reporting any clamp to inventory"""
    item: CartLineResponse
    clamped: bool = False
    available: Optional[int] = None

class CartSyncResponse(BaseSchema):
    """Cart after re-snapshotting prices"""
    cart: CartResponse
    updated: int
