"""
Cart service layer
Handles shopping cart business logic
"""

from typing import Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from sqlalchemy.orm import selectinload
import logging
import uuid

from liveshop.models import Cart, CartItem, Product, User
from liveshop.core.exceptions import (
    NotFoundException,
    InsufficientInventoryException
)
from liveshop.services.pricing import compute_subtotal
from .schemas import CartLineResponse, CartResponse

logger = logging.getLogger(__name__)

class CartService:
    """Shopping cart service"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load_cart(self, user_id: uuid.UUID) -> Optional[Cart]:
        result = await self.db.execute(
            select(Cart)
            .options(selectinload(Cart.items).selectinload(CartItem.product))
            .where(Cart.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_or_create_cart(self, user_id: uuid.UUID) -> Cart:
        """Get the user's cart, creating an empty one on first use"""
        cart = await self._load_cart(user_id)
        if cart is None:
            cart = Cart(user_id=user_id, items=[])
            self.db.add(cart)
            await self.db.flush()
        return cart

    async def _get_active_product(self, product_id: uuid.UUID) -> Product:
        product = await self.db.get(Product, product_id)
        if not product or not product.is_active:
            raise NotFoundException("Product not found")
        return product

    def _find_line(self, cart: Cart, item_id: uuid.UUID) -> CartItem:
        for item in cart.items:
            if item.id == item_id:
                return item
        raise NotFoundException("Cart item not found")

    @staticmethod
    def line_response(item: CartItem) -> CartLineResponse:
        product = item.product
        return CartLineResponse(
            id=item.id,
            product_id=item.product_id,
            quantity=item.quantity,
            price=item.price,
            line_total=item.price * item.quantity,
            title=product.title,
            image=product.thumbnail,
            category=product.category,
            inventory=product.inventory,
            in_stock=product.in_stock,
            current_price=product.price
        )

    def cart_response(self, cart: Cart) -> CartResponse:
        return CartResponse(
            id=cart.id,
            items=[self.line_response(item) for item in cart.items],
            item_count=sum(item.quantity for item in cart.items),
            subtotal=compute_subtotal(cart.items)
        )

    async def get_cart(self, user: User) -> CartResponse:
        """
        Get cart for user

        Args:
            user: Authenticated user

        Returns:
            Cart with live product data and subtotal from snapshot prices
        """
        cart = await self._load_cart(user.id)
        if cart is None:
            return CartResponse()
        return self.cart_response(cart)

    async def add_item(
        self,
        user: User,
        product_id: uuid.UUID,
        quantity: int = 1
    ) -> Tuple[CartLineResponse, bool, int]:
        """
        Add product to cart or increment the existing line

        The resulting quantity is clamped to inventory. When no unit can be
        added at all the request fails.

        Args:
            user: Cart owner
            product_id: Product to add
            quantity: Units requested

        Returns:
            The line, whether it was clamped, and the available inventory

        Raises:
            NotFoundException: If the product is unknown or inactive
            InsufficientInventoryException: If no unit can be added
        """
        product = await self._get_active_product(product_id)
        cart = await self.get_or_create_cart(user.id)

        existing = next((i for i in cart.items if i.product_id == product.id), None)
        current = existing.quantity if existing else 0
        headroom = product.inventory - current

        if headroom <= 0:
            logger.warning(
                "Add to cart rejected for product %s: %s in cart, %s available",
                product.id, current, product.inventory
            )
            raise InsufficientInventoryException(product.title, product.inventory)

        clamped = quantity > headroom
        added = min(quantity, headroom)

        if existing:
            # Snapshot price is kept on increment
            existing.quantity = current + added
            item = existing
        else:
            item = CartItem(product_id=product.id, quantity=added, price=product.price)
            cart.items.append(item)

        await self.db.commit()
        logger.info("Added %s x %s to cart %s (clamped=%s)", added, product.id, cart.id, clamped)

        cart = await self._load_cart(user.id)
        line = self._find_line(cart, item.id)
        return self.line_response(line), clamped, product.inventory

    async def update_item(self, user: User, item_id: uuid.UUID, quantity: int) -> CartLineResponse:
        """
        Set a line's quantity

        Raises:
            NotFoundException: If the line is not in the user's cart
            InsufficientInventoryException: If quantity exceeds inventory
        """
        cart = await self._load_cart(user.id)
        if cart is None:
            raise NotFoundException("Cart item not found")

        item = self._find_line(cart, item_id)
        if quantity > item.product.inventory:
            logger.warning("Quantity %s for line %s exceeds inventory", quantity, item.id)
            raise InsufficientInventoryException(item.product.title, item.product.inventory)

        item.quantity = quantity
        await self.db.commit()

        cart = await self._load_cart(user.id)
        return self.line_response(self._find_line(cart, item_id))

    async def remove_item(self, user: User, item_id: uuid.UUID) -> bool:
        """
        Remove a line

        Returns:
            True if a row was deleted, False if the line was already gone
        """
        cart = await self._load_cart(user.id)
        if cart is None:
            return False

        result = await self.db.execute(
            delete(CartItem).where(CartItem.id == item_id, CartItem.cart_id == cart.id)
        )
        await self.db.commit()
        return result.rowcount > 0

    async def clear_cart(self, user: User) -> int:
        """Remove every line, returning how many were deleted"""
        cart = await self._load_cart(user.id)
        if cart is None:
            return 0

        result = await self.db.execute(delete(CartItem).where(CartItem.cart_id == cart.id))
        await self.db.commit()
        logger.info("Cleared %s lines from cart %s", result.rowcount, cart.id)
        return result.rowcount

    async def sync_prices(self, user: User) -> Tuple[CartResponse, int]:
        """
        Re-snapshot line prices from the live catalog

        Returns:
            Updated cart and the number of lines whose price changed
        """
        cart = await self.get_or_create_cart(user.id)
        updated = 0
        for item in cart.items:
            if item.price != item.product.price:
                item.price = item.product.price
                updated += 1

        await self.db.commit()
        if updated:
            logger.info("Re-priced %s lines in cart %s", updated, cart.id)

        cart = await self._load_cart(user.id)
        return self.cart_response(cart), updated
