"""
Promo code service for validating and redeeming discount codes
"""

from typing import Iterable, Optional
from datetime import datetime, timezone
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_, update
import logging
import uuid

from liveshop.models.coupon import PromoCode, PromoCodeUsage
from liveshop.core.exceptions import ConflictException, InvalidPromoCodeException
from liveshop.services.pricing import Discount, DiscountType, money, to_decimal

logger = logging.getLogger(__name__)

class PromoCodeService:
    """
    Service for promo code operations
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_code(self, code: str) -> Optional[PromoCode]:
        """Look up a code case-insensitively"""
        result = await self.db.execute(
            select(PromoCode).where(func.upper(PromoCode.code) == code.strip().upper())
        )
        return result.scalar_one_or_none()

    async def user_usage_count(self, promo: PromoCode, user_id: uuid.UUID) -> int:
        return await self.db.scalar(
            select(func.count(PromoCodeUsage.id)).where(
                PromoCodeUsage.promo_code_id == promo.id,
                PromoCodeUsage.user_id == user_id
            )
        ) or 0

    async def validate(
        self,
        code: str,
        user_id: uuid.UUID,
        subtotal: Optional[Decimal] = None,
        categories: Optional[Iterable[str]] = None,
        enforce_minimum: bool = True,
        now: Optional[datetime] = None
    ) -> PromoCode:
        """
        Validate a promo code for a user

        Args:
            code: Code as typed by the user
            user_id: Redeeming user
            subtotal: Order subtotal, checked against the minimum order amount
            categories: Categories present in the order
            enforce_minimum: Reject subtotals below the minimum instead of
                leaving it to the calculator to ignore the discount
            now: Reference time for the validity window

        Returns:
            The matching promo code

        Raises:
            InvalidPromoCodeException: With the specific reason the code cannot be used
        """
        promo = await self.get_by_code(code)

        if not promo or not promo.is_active:
            raise InvalidPromoCodeException("Invalid promo code")

        if not promo.is_within_window(now or datetime.now(timezone.utc)):
            raise InvalidPromoCodeException("Promo code has expired or is not yet active")

        if promo.is_exhausted:
            raise InvalidPromoCodeException("Promo code usage limit reached")

        if promo.max_uses_per_user:
            if await self.user_usage_count(promo, user_id) >= promo.max_uses_per_user:
                raise InvalidPromoCodeException("You have already used this promo code")

        if (
            enforce_minimum
            and subtotal is not None
            and promo.min_order_amount is not None
            and to_decimal(subtotal) < promo.min_order_amount
        ):
            raise InvalidPromoCodeException(
                f"Minimum order amount of {money(promo.min_order_amount)} required"
            )

        if promo.applicable_categories and categories is not None:
            if not set(categories) & set(promo.applicable_categories):
                raise InvalidPromoCodeException("Promo code does not apply to items in your cart")

        return promo

    @staticmethod
    def to_discount(promo: PromoCode) -> Discount:
        return Discount(
            code=promo.code,
            discount_type=DiscountType(promo.discount_type),
            value=promo.value,
            min_order_amount=promo.min_order_amount,
            applicable_categories=tuple(promo.applicable_categories or ())
        )

    async def record_usage(
        self,
        promo: PromoCode,
        user_id: uuid.UUID,
        order_id: uuid.UUID,
        discount_amount: Decimal
    ) -> None:
        """
        Record a redemption; committed together with the order

        The use is claimed with a conditional UPDATE so concurrent orders
        cannot push a code past max_uses.

        Raises:
            InvalidPromoCodeException: If the last use was taken since validation
        """
        claimed = await self.db.execute(
            update(PromoCode)
            .where(
                PromoCode.id == promo.id,
                or_(PromoCode.max_uses.is_(None), PromoCode.used_count < PromoCode.max_uses)
            )
            .values(used_count=PromoCode.used_count + 1)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount == 0:
            logger.warning("Promo code %s exhausted before order %s was placed", promo.code, order_id)
            raise InvalidPromoCodeException("Promo code usage limit reached")

        self.db.add(PromoCodeUsage(
            promo_code_id=promo.id,
            user_id=user_id,
            order_id=order_id,
            discount_amount=money(discount_amount)
        ))
        logger.info("Promo code %s redeemed on order %s", promo.code, order_id)

    async def create(self, **fields) -> PromoCode:
        """Create a promo code; codes are stored upper-case"""
        fields["code"] = fields["code"].strip().upper()
        if await self.get_by_code(fields["code"]):
            raise ConflictException("Promo code already exists", error_code="PROMO_CODE_EXISTS")

        promo = PromoCode(**fields)
        self.db.add(promo)
        await self.db.commit()
        return promo
