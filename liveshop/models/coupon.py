"""
Promo code and discount models
"""

from sqlalchemy import Column, String, Integer, Numeric, Boolean, ForeignKey, Index, CheckConstraint, Text, DateTime, JSON, Uuid
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from typing import Optional

from .base import Base, TimestampedModel, UUIDModel

def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything is stored as UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value

class PromoCode(Base, TimestampedModel, UUIDModel):
    """Discount promo codes"""

    __tablename__ = "promo_codes"

    code = Column(String(50), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)

    # Discount details
    discount_type = Column(String(20), nullable=False)  # percentage, fixed
    value = Column(Numeric(10, 2), nullable=False)

    # Conditions
    min_order_amount = Column(Numeric(10, 2), nullable=True)

    # Usage limits
    max_uses = Column(Integer, nullable=True)  # Global cap
    used_count = Column(Integer, nullable=False, default=0)
    max_uses_per_user = Column(Integer, nullable=True)

    # Validity
    valid_from = Column(DateTime(timezone=True), nullable=True)
    valid_until = Column(DateTime(timezone=True), nullable=True)

    # Applicability, empty means every category
    applicable_categories = Column(JSON, nullable=False, default=list)

    # Status
    is_active = Column(Boolean, nullable=False, default=True)

    # Relationships
    usages = relationship("PromoCodeUsage", back_populates="promo_code")

    # Constraints
    __table_args__ = (
        CheckConstraint("value >= 0", name="check_non_negative_promo_value"),
        CheckConstraint("max_uses IS NULL OR max_uses > 0", name="check_positive_max_uses"),
        Index("idx_promo_codes_active_valid", "is_active", "valid_from", "valid_until"),
    )

    def is_within_window(self, now: Optional[datetime] = None) -> bool:
        """Check the validity window only"""
        now = now or datetime.now(timezone.utc)

        valid_from = _aware(self.valid_from)
        valid_until = _aware(self.valid_until)

        if valid_from and now < valid_from:
            return False

        if valid_until and now > valid_until:
            return False

        return True

    @property
    def is_exhausted(self) -> bool:
        return self.max_uses is not None and (self.used_count or 0) >= self.max_uses

class PromoCodeUsage(Base, TimestampedModel, UUIDModel):
    """Track promo code usage by users"""

    __tablename__ = "promo_code_usages"

    promo_code_id = Column(Uuid(as_uuid=True), ForeignKey("promo_codes.id"), nullable=False)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)
    order_id = Column(Uuid(as_uuid=True), ForeignKey("orders.id"), nullable=False)

    # Discount applied
    discount_amount = Column(Numeric(10, 2), nullable=False)

    # Relationships
    promo_code = relationship("PromoCode", back_populates="usages")

    # Indexes
    __table_args__ = (
        Index("idx_promo_usages_code_user", "promo_code_id", "user_id"),
        Index("idx_promo_usages_order", "order_id"),
    )
