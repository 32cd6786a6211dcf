"""Cart router"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from liveshop.core.database import get_db
from liveshop.api.deps import get_current_user
from liveshop.models import User
from liveshop.schemas.base import success_response
from .schemas import CartItemCreate, CartItemUpdate, CartAddResponse, CartSyncResponse
from .services import CartService

router = APIRouter()

@router.get("")
async def get_cart(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get the current user's cart with live product data"""
    service = CartService(db)
    return success_response(await service.get_cart(current_user))

@router.post("")
async def add_to_cart(
    item_data: CartItemCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Add item to cart, clamping to available inventory"""
    service = CartService(db)
    line, clamped, available = await service.add_item(
        current_user,
        product_id=item_data.product_id,
        quantity=item_data.quantity
    )

    if clamped:
        message = f"Only {available} available. Quantity adjusted to {line.quantity}."
    else:
        message = "Item added to cart"

    return success_response(
        CartAddResponse(item=line, clamped=clamped, available=available),
        message=message
    )

@router.post("/sync")
async def sync_cart_prices(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Refresh snapshot prices from the catalog"""
    service = CartService(db)
    cart, updated = await service.sync_prices(current_user)
    return success_response(
        CartSyncResponse(cart=cart, updated=updated),
        message="Cart prices updated" if updated else "Cart prices are current"
    )

@router.put("/{item_id}")
async def update_cart_item(
    item_id: uuid.UUID,
    update_data: CartItemUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Set cart item quantity"""
    service = CartService(db)
    line = await service.update_item(current_user, item_id, update_data.quantity)
    return success_response(line, message="Cart updated")

@router.delete("/{item_id}")
async def remove_cart_item(
    item_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Remove item from cart; removing a missing line still succeeds"""
    service = CartService(db)
    removed = await service.remove_item(current_user, item_id)
    return success_response(
        {"removed": removed},
        message="Item removed from cart" if removed else "Item was not in cart"
    )

@router.delete("")
async def clear_cart(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Clear all items from cart"""
    service = CartService(db)
    cleared = await service.clear_cart(current_user)
    return success_response({"cleared": cleared}, message="Cart cleared")
