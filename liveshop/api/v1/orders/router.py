"""Order router"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import uuid

from liveshop.core.config import settings
from liveshop.core.database import get_db
from liveshop.api.deps import get_current_user, require_admin
from liveshop.models import OrderStatus, User
from liveshop.schemas.base import success_response
from .schemas import OrderCancelRequest, OrderCreate, OrderListResponse, OrderUpdate
from .services import OrderService

router = APIRouter()

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: OrderCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Create order from the submitted items, priced server-side"""
    service = OrderService(db)
    order = await service.create_order(current_user, order_data)
    return success_response(service.to_response(order), message="Order created successfully")

@router.get("")
async def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    status: Optional[OrderStatus] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List the current user's orders"""
    service = OrderService(db)
    result = await service.list_orders(current_user, status=status, page=page, limit=limit)
    return success_response(OrderListResponse(**result))

@router.get("/{order_id}")
async def get_order(
    order_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get order details"""
    service = OrderService(db)
    order = await service.get_order(order_id, current_user)
    return success_response(service.to_response(order))

@router.patch("/{order_id}")
async def update_order(
    order_id: uuid.UUID,
    update_data: OrderUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Update order status, tracking or notes (admin)"""
    service = OrderService(db)
    order = await service.update_order(order_id, update_data, admin)
    return success_response(service.to_response(order), message="Order updated")

@router.post("/{order_id}/cancel")
async def cancel_order(
    order_id: uuid.UUID,
    cancel_data: Optional[OrderCancelRequest] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Cancel an order that has not shipped yet"""
    service = OrderService(db)
    reason = cancel_data.reason if cancel_data else None
    order = await service.cancel_order(order_id, current_user, reason)
    return success_response(service.to_response(order), message="Order cancelled")
