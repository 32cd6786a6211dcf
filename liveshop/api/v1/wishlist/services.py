"""
Wishlist service layer
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
import logging
import uuid

from liveshop.models import Product, User, WishlistItem
from liveshop.core.exceptions import BadRequestException, ConflictException, NotFoundException
from .schemas import WishlistItemResponse, WishlistResponse

logger = logging.getLogger(__name__)

class WishlistService:
    """Wishlist service"""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def item_response(item: WishlistItem) -> WishlistItemResponse:
        product = item.product
        return WishlistItemResponse(
            id=item.id,
            product_id=item.product_id,
            added_date=item.created_at,
            title=product.title,
            price=product.price,
            image=product.thumbnail,
            category=product.category,
            inventory=product.inventory,
            in_stock=product.in_stock
        )

    async def _find(self, user_id: uuid.UUID, product_id: uuid.UUID):
        result = await self.db.execute(
            select(WishlistItem)
            .options(selectinload(WishlistItem.product))
            .where(WishlistItem.user_id == user_id, WishlistItem.product_id == product_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_wishlist(self, user: User) -> WishlistResponse:
        """List the user's wishlist, newest first"""
        result = await self.db.execute(
            select(WishlistItem)
            .options(selectinload(WishlistItem.product))
            .where(WishlistItem.user_id == user.id)
            .order_by(WishlistItem.created_at.desc())
        )
        items = [self.item_response(item) for item in result.scalars().all()]
        return WishlistResponse(items=items, count=len(items))

    async def add_item(self, user: User, product_id: uuid.UUID) -> WishlistItemResponse:
        """
        Save a product to the wishlist

        Raises:
            NotFoundException: If the product does not exist
            BadRequestException: If the product is not available
            ConflictException: If the product is already saved
        """
        product = await self.db.get(Product, product_id)
        if not product:
            raise NotFoundException("Product not found")

        if not product.is_active:
            raise BadRequestException("Product is not available", error_code="PRODUCT_UNAVAILABLE")

        if await self._find(user.id, product_id):
            raise ConflictException("Product already in wishlist", error_code="ALREADY_IN_WISHLIST")

        self.db.add(WishlistItem(user_id=user.id, product_id=product_id))
        await self.db.commit()
        logger.info("User %s saved product %s", user.id, product_id)

        return self.item_response(await self._find(user.id, product_id))

    async def remove_item(self, user: User, product_id: uuid.UUID) -> None:
        """
        Remove a product from the wishlist

        Raises:
            NotFoundException: If the product is not in the wishlist
        """
        item = await self._find(user.id, product_id)
        if not item:
            raise NotFoundException("Item not found in wishlist")

        await self.db.delete(item)
        await self.db.commit()
        logger.info("User %s removed product %s from wishlist", user.id, product_id)
