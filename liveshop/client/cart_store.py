"""
Client cart store

Holds the cart lines for one signed-in session, applies changes optimistically
and reconciles with the server response. Totals are recomputed after every
local mutation, including rollbacks.
"""

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
import logging

from liveshop.core.config import settings
from liveshop.services.pricing import (
    DeliveryOption,
    Discount,
    ShippingPolicy,
    Totals,
    ZERO,
    compute_subtotal,
    compute_totals,
    default_shipping_policy,
    to_decimal,
)
from .commands import KeyedLocks, OptimisticCommand
from .errors import InsufficientInventory, NotFound, ShopError, Unauthenticated, ValidationError
from .http import ShopApiClient
from .notifications import Notifier

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class CartLine:
    id: str
    product_id: str
    quantity: int
    price: Decimal
    title: str = ""
    image: Optional[str] = None
    category: Optional[str] = None
    inventory: int = 0
    in_stock: bool = True

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "CartLine":
        return cls(
            id=str(data["id"]),
            product_id=str(data["product_id"]),
            quantity=int(data["quantity"]),
            price=to_decimal(data["price"]),
            title=data.get("title", ""),
            image=data.get("image"),
            category=data.get("category"),
            inventory=int(data.get("inventory", 0)),
            in_stock=bool(data.get("in_stock", True)),
        )

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

class CartStore:
    """Cart line-item store for one session"""

    def __init__(
        self,
        api: ShopApiClient,
        notifier: Notifier,
        shipping_policy: Optional[ShippingPolicy] = None,
        tax_rate: Optional[Decimal] = None,
    ):
        self.api = api
        self.notifier = notifier
        self.shipping_policy = shipping_policy or default_shipping_policy()
        self.tax_rate = tax_rate if tax_rate is not None else settings.TAX_RATE
        self.locks = KeyedLocks()

        self._lines: List[CartLine] = []
        self.subtotal: Decimal = ZERO
        self.item_count: int = 0

    # Local state

    @property
    def lines(self) -> Tuple[CartLine, ...]:
        return tuple(self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def line_for(self, product_id: str) -> Optional[CartLine]:
        product_id = str(product_id)
        return next((line for line in self._lines if line.product_id == product_id), None)

    def get_line(self, line_id: str) -> Optional[CartLine]:
        line_id = str(line_id)
        return next((line for line in self._lines if line.id == line_id), None)

    def _index_of(self, line_id: str) -> Optional[int]:
        for index, line in enumerate(self._lines):
            if line.id == line_id:
                return index
        return None

    def recompute_totals(self) -> None:
        self.subtotal = compute_subtotal(self._lines)
        self.item_count = sum(line.quantity for line in self._lines)

    def _set_lines(self, lines: List[CartLine]) -> None:
        self._lines = list(lines)
        self.recompute_totals()

    def _upsert(self, line: CartLine) -> None:
        """Replace the line with the same id or product, else append"""
        for index, current in enumerate(self._lines):
            if current.id == line.id or current.product_id == line.product_id:
                self._lines[index] = line
                break
        else:
            self._lines.append(line)
        self.recompute_totals()

    def _set_quantity(self, line_id: str, quantity: int) -> None:
        index = self._index_of(line_id)
        if index is not None:
            self._lines[index] = replace(self._lines[index], quantity=quantity)
        self.recompute_totals()

    def _remove_at(self, index: int) -> None:
        del self._lines[index]
        self.recompute_totals()

    def _restore(self, line: CartLine, before_id: Optional[str], index: int) -> None:
        """Put a line back ahead of the line that followed it, else at its old index"""
        anchor = self._index_of(before_id) if before_id is not None else None
        if anchor is None:
            anchor = min(index, len(self._lines))
        self._lines.insert(anchor, line)
        self.recompute_totals()

    def _fail(self, title: str, error: ShopError) -> ShopError:
        """Emit the single error notification for a failed operation"""
        self.notifier.error(title, error.message, code=error.code)
        return error

    def pending(self, product_id: str) -> bool:
        """True while a change to this product's line, or to the whole cart, is in flight"""
        return self.locks.pending(str(product_id)) or self.locks.exclusive

    def totals(
        self,
        discount: Optional[Discount] = None,
        delivery_option: DeliveryOption = DeliveryOption.STANDARD
    ) -> Totals:
        return compute_totals(
            self._lines,
            discount=discount,
            shipping_policy=self.shipping_policy,
            tax_rate=self.tax_rate,
            delivery_option=delivery_option,
        )

    def reset(self) -> None:
        """Drop all local state, used on sign-out"""
        self._set_lines([])

    # Server operations

    async def refresh(self) -> None:
        """Load the cart from the server"""
        try:
            data = await self.api.get_cart()
        except ShopError as e:
            raise self._fail("Could not load cart", e)
        self._set_lines([CartLine.from_api(item) for item in data.get("items", [])])

    async def add_item(self, product_id: str, quantity: int = 1) -> CartLine:
        """
        Add a product or increment its existing line

        The quantity is clamped to inventory: a clamp keeps the reduced
        quantity and emits a warning. When no unit can be added the call
        raises InsufficientInventory without touching the cart.

        Returns:
            The reconciled line
        """
        product_id = str(product_id)
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise self._fail("Could not add to cart", ValidationError(
                "Quantity must be a whole number of at least 1",
                fields={"quantity": "Must be at least 1"}
            ))

        async with self.locks.hold(product_id):
            if not self.api.authenticated:
                raise self._fail("Sign in required", Unauthenticated("Please sign in to add items to your cart"))

            existing = self.line_for(product_id)
            if existing is not None:
                headroom = existing.inventory - existing.quantity
                if headroom <= 0:
                    raise self._fail("Not enough stock", InsufficientInventory(
                        f"Only {existing.inventory} of {existing.title or 'this item'} available",
                        available=existing.inventory
                    ))

                target = existing.quantity + min(quantity, headroom)
                command = OptimisticCommand(
                    apply=lambda: self._set_quantity(existing.id, target),
                    rollback=lambda: self._set_quantity(existing.id, existing.quantity),
                    description=f"add to line {existing.id}"
                )
            else:
                # New lines appear once the server has assigned an id
                command = OptimisticCommand(apply=lambda: None, rollback=lambda: None)

            try:
                data = await command.run(lambda: self.api.add_to_cart(product_id, quantity))
            except ShopError as e:
                raise self._fail("Could not add to cart", e)

            line = CartLine.from_api(data["item"])
            self._upsert(line)

            if data.get("clamped"):
                self.notifier.warning(
                    "Quantity adjusted",
                    f"Only {data.get('available')} available. Your cart now has {line.quantity}.",
                    code=InsufficientInventory.code
                )
            else:
                self.notifier.success("Added to cart", f"{line.title or 'Item'} added to your cart")

            return line

    async def update_quantity(self, line_id: str, quantity: int) -> Optional[CartLine]:
        """
        Set a line's quantity

        A quantity below one removes the line. Quantities above the known
        inventory fail locally and leave the line unchanged.
        """
        line_id = str(line_id)
        if quantity < 1:
            await self.remove_item(line_id)
            return None

        line = self.get_line(line_id)
        if line is None:
            raise self._fail("Could not update cart", NotFound("This item is no longer in your cart"))

        async with self.locks.hold(line.product_id):
            line = self.get_line(line_id)
            if line is None:
                raise self._fail("Could not update cart", NotFound("This item is no longer in your cart"))

            if quantity > line.inventory:
                raise self._fail("Not enough stock", InsufficientInventory(
                    f"Only {line.inventory} of {line.title or 'this item'} available",
                    available=line.inventory
                ))

            previous = line.quantity
            command = OptimisticCommand(
                apply=lambda: self._set_quantity(line_id, quantity),
                rollback=lambda: self._set_quantity(line_id, previous),
                description=f"update line {line_id}"
            )

            try:
                data = await command.run(lambda: self.api.update_cart_item(line_id, quantity))
            except ShopError as e:
                raise self._fail("Could not update cart", e)

            updated = CartLine.from_api(data)
            self._upsert(updated)
            self.notifier.success("Cart updated", f"Quantity set to {updated.quantity}")
            return updated

    async def remove_item(self, line_id: str) -> None:
        """Remove a line; removing a line that is not there does nothing"""
        line_id = str(line_id)
        line = self.get_line(line_id)
        if line is None:
            logger.debug("Remove of absent cart line %s ignored", line_id)
            return

        async with self.locks.hold(line.product_id):
            index = self._index_of(line_id)
            if index is None:
                return
            removed = self._lines[index]
            following = self._lines[index + 1].id if index + 1 < len(self._lines) else None

            command = OptimisticCommand(
                apply=lambda: self._remove_at(index),
                rollback=lambda: self._restore(removed, following, index),
                description=f"remove line {line_id}"
            )

            try:
                await command.run(lambda: self.api.remove_cart_item(line_id))
            except ShopError as e:
                raise self._fail("Could not remove item", e)

            self.notifier.success("Removed from cart", f"{removed.title or 'Item'} removed from your cart")

    async def clear_cart(self, notify: bool = True) -> None:
        """
        Empty the cart on the server and locally

        Waits for in-flight line changes and blocks new ones, so a failed
        clear restores exactly the lines the server still holds.
        """
        async with self.locks.hold_all():
            previous = list(self._lines)
            command = OptimisticCommand(
                apply=lambda: self._set_lines([]),
                rollback=lambda: self._set_lines(previous),
                description="clear cart"
            )

            try:
                await command.run(self.api.clear_cart)
            except ShopError as e:
                raise self._fail("Could not clear cart", e)

        if notify:
            self.notifier.success("Cart cleared")

    async def sync_prices(self) -> int:
        """Re-snapshot prices from the catalog; returns how many lines changed"""
        try:
            data = await self.api.sync_cart()
        except ShopError as e:
            raise self._fail("Could not refresh prices", e)

        self._set_lines([CartLine.from_api(item) for item in data["cart"].get("items", [])])
        updated = int(data.get("updated", 0))
        if updated:
            self.notifier.info("Prices updated", f"{updated} item prices changed since you added them")
        return updated
