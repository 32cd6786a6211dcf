"""
Product catalog model
Read-only from the point of view of carts and wishlists
"""

from sqlalchemy import Column, String, Integer, Numeric, Text, JSON, Index, CheckConstraint
from sqlalchemy.orm import relationship

from .base import Base, TimestampedModel, UUIDModel

class Product(Base, TimestampedModel, UUIDModel):
    """Catalog product"""

    __tablename__ = "products"

    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    inventory = Column(Integer, nullable=False, default=0)
    images = Column(JSON, nullable=False, default=list)
    category = Column(String(100), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="active")  # active, inactive

    # Free-form attribute bag, see liveshop.schemas.product.ProductAttributes
    attributes = Column(JSON, nullable=False, default=dict)

    # Relationships
    cart_items = relationship("CartItem", back_populates="product")
    wishlist_items = relationship("WishlistItem", back_populates="product")

    __table_args__ = (
        CheckConstraint("inventory >= 0", name="check_non_negative_inventory"),
        Index("idx_products_category_status", "category", "status"),
    )

    @property
    def in_stock(self) -> bool:
        return (self.inventory or 0) > 0

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @property
    def thumbnail(self):
        return self.images[0] if self.images else None
