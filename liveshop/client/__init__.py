"""
Client core for the LiveShop storefront

Stores, notifications and the checkout flow, talking to the API over httpx.
"""

from .cart_store import CartLine, CartStore
from .checkout import (
    ApiPaymentGateway,
    CheckoutOrchestrator,
    CheckoutStep,
    PaymentGateway,
    PaymentResult,
)
from .commands import KeyedLocks, OptimisticCommand
from .errors import (
    CheckoutStateError,
    Conflict,
    EmptyCart,
    InsufficientInventory,
    NetworkError,
    NotFound,
    OrderCreationFailed,
    PaymentFailed,
    ServerError,
    ShopError,
    Unauthenticated,
    ValidationError,
)
from .http import ShopApiClient
from .notifications import Notification, NotificationKind, Notifier
from .session import ShopSession
from .wishlist_store import WishlistEntry, WishlistStats, WishlistStore

__all__ = [
    "ApiPaymentGateway",
    "CartLine",
    "CartStore",
    "CheckoutOrchestrator",
    "CheckoutStateError",
    "CheckoutStep",
    "Conflict",
    "EmptyCart",
    "InsufficientInventory",
    "KeyedLocks",
    "NetworkError",
    "NotFound",
    "Notification",
    "NotificationKind",
    "Notifier",
    "OptimisticCommand",
    "OrderCreationFailed",
    "PaymentFailed",
    "PaymentGateway",
    "PaymentResult",
    "ServerError",
    "ShopApiClient",
    "ShopError",
    "ShopSession",
    "Unauthenticated",
    "ValidationError",
    "WishlistEntry",
    "WishlistStats",
    "WishlistStore",
]
