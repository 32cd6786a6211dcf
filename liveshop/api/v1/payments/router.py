"""Payment router"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from liveshop.core.database import get_db
from liveshop.api.deps import get_current_user
from liveshop.models import User
from liveshop.schemas.base import success_response
from .razorpay_client import RazorpayClient, get_payment_gateway
from .schemas import PaymentCreateRequest, PaymentVerifyRequest
from .services import PaymentService

router = APIRouter()

@router.post("/create")
async def create_payment(
    data: PaymentCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    gateway: RazorpayClient = Depends(get_payment_gateway)
):
    """Create a gateway order for an unpaid order"""
    service = PaymentService(db, gateway)
    return success_response(await service.create_payment(data.order_id, current_user))

@router.post("/verify")
async def verify_payment(
    data: PaymentVerifyRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    gateway: RazorpayClient = Depends(get_payment_gateway)
):
    """Verify a completed payment and confirm the order"""
    service = PaymentService(db, gateway)
    order = await service.verify_payment(data, current_user)
    return success_response(
        service.order_service.to_response(order),
        message="Payment verified successfully"
    )
