"""
Session container

Owns the per-user client state. Build one per signed-in session instead of
sharing module-level stores.
"""

from decimal import Decimal
from typing import Optional
import logging

from liveshop.services.pricing import ShippingPolicy
from .cart_store import CartStore
from .checkout import CheckoutOrchestrator, PaymentGateway
from .http import ShopApiClient
from .notifications import Notifier
from .wishlist_store import WishlistStore

logger = logging.getLogger(__name__)

class ShopSession:
    """Cart, wishlist and notifications for one user session"""

    def __init__(
        self,
        api: ShopApiClient,
        notifier: Optional[Notifier] = None,
        shipping_policy: Optional[ShippingPolicy] = None,
        tax_rate: Optional[Decimal] = None,
    ):
        self.api = api
        self.notifier = notifier or Notifier()
        self.cart = CartStore(api, self.notifier, shipping_policy=shipping_policy, tax_rate=tax_rate)
        self.wishlist = WishlistStore(api, self.notifier)

    @property
    def signed_in(self) -> bool:
        return self.api.authenticated

    async def sign_in(self, token: str) -> None:
        """Attach the bearer token and load server state"""
        self.api.set_token(token)
        await self.cart.refresh()
        await self.wishlist.refresh()
        logger.info("Session signed in with %s cart lines", len(self.cart.lines))

    def sign_out(self) -> None:
        self.api.set_token(None)
        self.cart.reset()
        self.wishlist.reset()
        self.notifier.clear()

    def checkout(self, gateway: PaymentGateway, payment_method: str = "razorpay") -> CheckoutOrchestrator:
        return CheckoutOrchestrator(self.cart, self.api, self.notifier, gateway, payment_method=payment_method)

    async def aclose(self) -> None:
        await self.api.aclose()
