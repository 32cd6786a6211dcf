"""
Client-side error taxonomy
Every failure surfaced by the stores and the checkout flow is one of these
"""

from typing import Any, Dict, Optional

class ShopError(Exception):
    """Base class for storefront client errors"""

    code = "shop_error"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload or {}

class Unauthenticated(ShopError):
    code = "unauthenticated"

class ValidationError(ShopError):
    """Bad input; ``fields`` maps field names to messages when known"""

    code = "validation_error"

    def __init__(self, message: str, fields: Optional[Dict[str, str]] = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.fields = fields or {}

class InsufficientInventory(ShopError):
    code = "insufficient_inventory"

    def __init__(self, message: str, available: Optional[int] = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.available = available

class NotFound(ShopError):
    code = "not_found"

class Conflict(ShopError):
    code = "conflict"

class NetworkError(ShopError):
    """Transport failure or timeout"""

    code = "network_error"

class ServerError(ShopError):
    code = "server_error"

class OrderCreationFailed(ShopError):
    code = "order_creation_failed"

class PaymentFailed(ShopError):
    code = "payment_failed"

class EmptyCart(ShopError):
    code = "empty_cart"

class CheckoutStateError(ShopError):
    """Checkout action attempted from a step that does not allow it"""

    code = "invalid_checkout_step"
