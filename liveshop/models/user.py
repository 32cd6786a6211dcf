"""
User model
Identity is owned by the external auth provider; this row maps its subject to local data
"""

from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship

from .base import Base, TimestampedModel, UUIDModel

class User(Base, TimestampedModel, UUIDModel):
    """Local profile for an authenticated shopper"""

    __tablename__ = "users"

    external_id = Column(String(255), unique=True, nullable=False, index=True)
    email = Column(String(255), nullable=True)
    name = Column(String(255), nullable=True)

    is_admin = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    cart = relationship("Cart", back_populates="user", uselist=False)
    wishlist_items = relationship("WishlistItem", back_populates="user")
    orders = relationship("Order", back_populates="buyer")
