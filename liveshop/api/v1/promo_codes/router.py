"""Promo code router"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
import dataclasses

from liveshop.core.database import get_db
from liveshop.api.deps import get_current_user, require_admin
from liveshop.models import User
from liveshop.schemas.base import success_response
from liveshop.services.coupon_service import PromoCodeService
from liveshop.services.pricing import compute_discount
from .schemas import PromoCodeCreate, PromoCodeResponse, PromoValidateRequest, PromoValidateResponse

router = APIRouter()

@router.post("/validate")
async def validate_promo_code(
    data: PromoValidateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Check a code against the caller's subtotal and preview the discount"""
    service = PromoCodeService(db)
    promo = await service.validate(
        data.code,
        current_user.id,
        subtotal=data.subtotal,
        categories=data.categories
    )
    discount = service.to_discount(promo)

    # Line categories are unknown here, so the preview spans the whole subtotal
    preview = compute_discount([], data.subtotal, dataclasses.replace(discount, applicable_categories=()))

    return success_response(
        PromoValidateResponse(
            code=promo.code,
            discount_type=discount.discount_type,
            value=promo.value,
            min_order_amount=promo.min_order_amount,
            applicable_categories=list(discount.applicable_categories),
            discount_amount=preview
        ),
        message="Promo code applied"
    )

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_promo_code(
    data: PromoCodeCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Create a promo code (admin)"""
    service = PromoCodeService(db)
    fields = data.model_dump()
    fields["discount_type"] = data.discount_type.value
    promo = await service.create(**fields)
    return success_response(PromoCodeResponse.model_validate(promo), message="Promo code created")
