"""Product schemas"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
import uuid

from .base import BaseSchema, Money

class ProductAttributes(BaseModel):
    """
    Typed view over the free-form product attribute bag

    The listed keys are the ones the storefront understands; anything else is
    carried through untouched.
    """

    model_config = ConfigDict(extra="allow")

    brand: Optional[str] = None
    color: Optional[str] = None
    size: Optional[str] = None
    material: Optional[str] = None
    weight: Optional[str] = None
    warranty: Optional[str] = None

class ProductSummary(BaseSchema):
    """Product fields joined into cart, wishlist and order views"""

    id: uuid.UUID
    title: str
    price: Money
    inventory: int = Field(..., ge=0)
    images: List[str] = []
    category: str
    in_stock: bool
    attributes: ProductAttributes = Field(default_factory=ProductAttributes)

    @property
    def image(self) -> Optional[str]:
        return self.images[0] if self.images else None

    def snapshot(self) -> dict:
        """Frozen copy stored on order lines"""
        return {
            "title": self.title,
            "image": self.image,
            "category": self.category,
            "attributes": self.attributes.model_dump(exclude_none=True),
        }
