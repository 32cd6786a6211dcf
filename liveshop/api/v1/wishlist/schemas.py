"""Wishlist schemas"""

from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
import uuid

from liveshop.schemas.base import BaseSchema, Money

class WishlistItemRequest(BaseModel):
    product_id: uuid.UUID

class WishlistItemResponse(BaseSchema):
    """Wishlist entry flattened with its product"""
    id: uuid.UUID
    product_id: uuid.UUID
    added_date: datetime

    title: str
    price: Money
    image: Optional[str] = None
    category: str
    inventory: int
    in_stock: bool

class WishlistResponse(BaseSchema):
    items: List[WishlistItemResponse] = []
    count: int = 0
