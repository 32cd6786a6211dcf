"""Promo code schemas"""

from pydantic import BaseModel, Field, model_validator
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
import uuid

from liveshop.schemas.base import BaseSchema, Money
from liveshop.services.pricing import DiscountType

class PromoValidateRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    subtotal: Decimal = Field(..., ge=0)
    categories: Optional[List[str]] = None

class PromoValidateResponse(BaseSchema):
    code: str
    discount_type: DiscountType
    value: Money
    min_order_amount: Optional[Money] = None
    applicable_categories: List[str] = []
    discount_amount: Money

class PromoCodeCreate(BaseModel):
    """Schema for creating a promo code"""
    code: str = Field(..., min_length=3, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    discount_type: DiscountType
    value: Decimal = Field(..., ge=0)
    min_order_amount: Optional[Decimal] = Field(None, ge=0)
    max_uses: Optional[int] = Field(None, gt=0)
    max_uses_per_user: Optional[int] = Field(None, gt=0)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    applicable_categories: List[str] = []
    is_active: bool = True

    @model_validator(mode="after")
    def check_values(self):
        if self.discount_type == DiscountType.PERCENTAGE and self.value > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        if self.valid_from and self.valid_until and self.valid_until <= self.valid_from:
            raise ValueError("valid_until must be after valid_from")
        return self

class PromoCodeResponse(BaseSchema):
    id: uuid.UUID
    code: str
    description: Optional[str] = None
    discount_type: DiscountType
    value: Money
    min_order_amount: Optional[Money] = None
    max_uses: Optional[int] = None
    used_count: int
    max_uses_per_user: Optional[int] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    applicable_categories: List[str] = []
    is_active: bool
