"""Models package initialization"""

from .base import Base
from .user import User
from .product import Product
from .cart import Cart, CartItem
from .wishlist import WishlistItem
from .coupon import PromoCode, PromoCodeUsage
from .order import Order, OrderItem, OrderStatus, PaymentStatus, OrderStatusHistory

# Export all models
__all__ = [
    "Base",
    "User",
    "Product",
    "Cart",
    "CartItem",
    "WishlistItem",
    "PromoCode",
    "PromoCodeUsage",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentStatus",
    "OrderStatusHistory",
]
