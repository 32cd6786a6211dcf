"""Wishlist router"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from liveshop.core.database import get_db
from liveshop.api.deps import get_current_user
from liveshop.models import User
from liveshop.schemas.base import success_response
from .schemas import WishlistItemRequest
from .services import WishlistService

router = APIRouter()

@router.get("")
async def get_wishlist(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get the user's wishlist"""
    service = WishlistService(db)
    return success_response(await service.get_wishlist(current_user))

@router.post("", status_code=status.HTTP_201_CREATED)
async def add_to_wishlist(
    data: WishlistItemRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Save a product"""
    service = WishlistService(db)
    item = await service.add_item(current_user, data.product_id)
    return success_response(item, message="Added to wishlist")

@router.delete("")
async def remove_from_wishlist(
    data: WishlistItemRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Remove a saved product"""
    service = WishlistService(db)
    await service.remove_item(current_user, data.product_id)
    return success_response({"product_id": data.product_id}, message="Removed from wishlist")
