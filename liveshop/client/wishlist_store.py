"""
Client wishlist store
"""

from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Set, Tuple
import logging

from liveshop.services.pricing import ZERO, to_decimal
from .cart_store import CartLine, CartStore
from .commands import KeyedLocks, OptimisticCommand
from .errors import Conflict, NotFound, ShopError
from .http import ShopApiClient
from .notifications import Notifier

logger = logging.getLogger(__name__)

def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if value:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return datetime.now(timezone.utc)

@dataclass(frozen=True)
class WishlistEntry:
    product_id: str
    id: Optional[str] = None
    added_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    title: str = ""
    price: Decimal = ZERO
    image: Optional[str] = None
    category: Optional[str] = None
    inventory: int = 0
    in_stock: bool = True
    pending: bool = False

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "WishlistEntry":
        return cls(
            id=str(data["id"]),
            product_id=str(data["product_id"]),
            added_date=_parse_datetime(data.get("added_date")),
            title=data.get("title", ""),
            price=to_decimal(data.get("price")),
            image=data.get("image"),
            category=data.get("category"),
            inventory=int(data.get("inventory", 0)),
            in_stock=bool(data.get("in_stock", True)),
        )

@dataclass(frozen=True)
class WishlistStats:
    total_items: int
    total_value: Decimal
    average_price: Decimal
    category_counts: Dict[str, int]
    out_of_stock_count: int

class WishlistStore:
    """Wishlist store for one session; newest entries first"""

    def __init__(self, api: ShopApiClient, notifier: Notifier):
        self.api = api
        self.notifier = notifier
        self.locks = KeyedLocks()

        self._items: List[WishlistEntry] = []
        self._ids: Set[str] = set()

    @property
    def items(self) -> Tuple[WishlistEntry, ...]:
        return tuple(self._items)

    @property
    def count(self) -> int:
        return len(self._items)

    @property
    def is_empty(self) -> bool:
        return not self._items

    def is_in_wishlist(self, product_id: str) -> bool:
        return str(product_id) in self._ids

    def pending(self, product_id: str) -> bool:
        return self.locks.pending(str(product_id))

    def _set_items(self, items: List[WishlistEntry]) -> None:
        self._items = list(items)
        self._ids = {item.product_id for item in self._items}

    def _insert_at(self, index: int, entry: WishlistEntry) -> None:
        self._items.insert(min(index, len(self._items)), entry)
        self._ids.add(entry.product_id)

    def _restore(self, entry: WishlistEntry, before: Optional[str], index: int) -> None:
        """Put an entry back ahead of the entry that followed it, else at its old index"""
        anchor = self._index_of(before) if before is not None else None
        self._insert_at(index if anchor is None else anchor, entry)

    def _following(self, index: int) -> Optional[str]:
        return self._items[index + 1].product_id if index + 1 < len(self._items) else None

    def _remove(self, product_id: str) -> Optional[int]:
        for index, item in enumerate(self._items):
            if item.product_id == product_id:
                del self._items[index]
                self._ids.discard(product_id)
                return index
        return None

    def _replace(self, product_id: str, entry: WishlistEntry) -> None:
        for index, item in enumerate(self._items):
            if item.product_id == product_id:
                self._items[index] = entry
                return

    def _index_of(self, product_id: str) -> Optional[int]:
        for index, item in enumerate(self._items):
            if item.product_id == product_id:
                return index
        return None

    def reset(self) -> None:
        self._set_items([])

    def stats(self) -> WishlistStats:
        total_value = sum((item.price for item in self._items), ZERO)
        return WishlistStats(
            total_items=len(self._items),
            total_value=total_value,
            average_price=total_value / len(self._items) if self._items else ZERO,
            category_counts=dict(Counter(item.category for item in self._items if item.category)),
            out_of_stock_count=sum(1 for item in self._items if item.inventory <= 0),
        )

    async def refresh(self) -> None:
        try:
            data = await self.api.get_wishlist()
        except ShopError as e:
            self.notifier.error("Could not load wishlist", e.message, code=e.code)
            raise
        self._set_items([WishlistEntry.from_api(item) for item in data.get("items", [])])

    def _requires_sign_in(self) -> bool:
        if self.api.authenticated:
            return False
        self.notifier.warning("Sign in required", "Please sign in to use your wishlist", code="unauthenticated")
        return True

    async def add_to_wishlist(self, product_id: str, **product: Any) -> bool:
        """
        Save a product

        Optional product fields (title, price, image, category, inventory)
        fill the placeholder shown until the server answers.

        Returns:
            True if the product was added
        """
        product_id = str(product_id)
        async with self.locks.hold(product_id):
            return await self._add(product_id, product)

    async def remove_from_wishlist(self, product_id: str) -> bool:
        """
        Remove a saved product

        Returns:
            True if the product is no longer saved
        """
        product_id = str(product_id)
        async with self.locks.hold(product_id):
            return await self._remove_entry(product_id)

    async def toggle_wishlist(self, product_id: str, **product: Any) -> bool:
        """Add or remove depending on membership; returns the new membership"""
        product_id = str(product_id)
        async with self.locks.hold(product_id):
            if self.is_in_wishlist(product_id):
                await self._remove_entry(product_id)
            else:
                await self._add(product_id, product)
            return self.is_in_wishlist(product_id)

    async def _add(self, product_id: str, product: Dict[str, Any]) -> bool:
        if self._requires_sign_in():
            return False

        if self.is_in_wishlist(product_id):
            self.notifier.info("Already saved", "This item is already in your wishlist", code="already_in_wishlist")
            return False

        placeholder = WishlistEntry(
            product_id=product_id,
            title=product.get("title", ""),
            price=to_decimal(product.get("price")),
            image=product.get("image"),
            category=product.get("category"),
            inventory=int(product.get("inventory", 0)),
            in_stock=bool(product.get("in_stock", True)),
            pending=True,
        )
        command = OptimisticCommand(
            apply=lambda: self._insert_at(0, placeholder),
            rollback=lambda: self._remove(product_id),
            description=f"wishlist add {product_id}"
        )

        try:
            data = await command.run(lambda: self.api.add_to_wishlist(product_id))
        except Conflict:
            # Saved from another session; keep it
            self._insert_at(0, replace(placeholder, pending=False))
            self.notifier.info("Already saved", "This item is already in your wishlist", code="already_in_wishlist")
            return False
        except ShopError as e:
            self.notifier.error("Could not add to wishlist", e.message, code=e.code)
            return False

        self._replace(product_id, WishlistEntry.from_api(data))
        self.notifier.success("Added to wishlist", f"{data.get('title') or 'Item'} saved to your wishlist")
        return True

    async def _remove_entry(self, product_id: str) -> bool:
        if self._requires_sign_in():
            return False

        index = self._index_of(product_id)
        if index is None:
            self.notifier.info("Not in wishlist", "This item is not in your wishlist", code="not_in_wishlist")
            return False

        entry = self._items[index]
        following = self._following(index)
        command = OptimisticCommand(
            apply=lambda: self._remove(product_id),
            rollback=lambda: self._restore(entry, following, index),
            description=f"wishlist remove {product_id}"
        )

        try:
            await command.run(lambda: self.api.remove_from_wishlist(product_id))
        except NotFound:
            # Already gone on the server
            self._remove(product_id)
            logger.info("Wishlist entry %s was already removed on the server", product_id)
        except ShopError as e:
            self.notifier.error("Could not remove from wishlist", e.message, code=e.code)
            return False

        self.notifier.success("Removed from wishlist", f"{entry.title or 'Item'} removed from your wishlist")
        return True

    async def move_to_cart(
        self,
        product_id: str,
        cart: CartStore,
        quantity: int = 1,
        remove: bool = True
    ) -> Optional[CartLine]:
        """
        Add a saved product to the cart

        With ``remove`` the entry leaves the wishlist: it is hidden while the
        cart add is in flight and comes back in place if the add fails. If the
        add succeeds but the server keeps the entry, the entry is restored and
        an error is reported; the cart line stays.

        Returns:
            The cart line, or None when the product is not saved
        """
        product_id = str(product_id)
        async with self.locks.hold(product_id):
            index = self._index_of(product_id)
            if index is None:
                self.notifier.info("Not in wishlist", "This item is not in your wishlist", code="not_in_wishlist")
                return None

            if not remove:
                return await cart.add_item(product_id, quantity)

            entry = self._items[index]
            following = self._following(index)
            command = OptimisticCommand(
                apply=lambda: self._remove(product_id),
                rollback=lambda: self._restore(entry, following, index),
                description=f"wishlist move {product_id}"
            )
            # The cart store reports its own failure
            line = await command.run(lambda: cart.add_item(product_id, quantity))

            try:
                await self.api.remove_from_wishlist(product_id)
            except NotFound:
                logger.info("Wishlist entry %s was already removed on the server", product_id)
            except ShopError as e:
                self._restore(entry, following, index)
                self.notifier.error("Could not remove from wishlist", e.message, code=e.code)
                return line

            logger.info("Moved %s from wishlist to cart", product_id)
            return line
