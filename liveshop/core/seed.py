"""
Demo data for local development
"""

from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import logging

from liveshop.models import Product, PromoCode

logger = logging.getLogger(__name__)

DEMO_PRODUCTS = [
    {
        "title": "Wireless Earbuds",
        "price": Decimal("29.99"),
        "inventory": 10,
        "category": "electronics",
        "images": ["https://cdn.liveshop.test/earbuds.jpg"],
        "attributes": {"brand": "Sonique", "color": "black", "warranty": "1 year"},
    },
    {
        "title": "Cotton Tee",
        "price": Decimal("12.50"),
        "inventory": 40,
        "category": "fashion",
        "images": ["https://cdn.liveshop.test/tee.jpg"],
        "attributes": {"size": "M", "material": "cotton"},
    },
    {
        "title": "Ceramic Mug",
        "price": Decimal("8.00"),
        "inventory": 0,
        "category": "home",
        "images": [],
        "attributes": {"color": "white"},
    },
]

DEMO_PROMO_CODES = [
    {"code": "SAVE10", "discount_type": "percentage", "value": Decimal("10"), "description": "10% off"},
    {"code": "WELCOME20", "discount_type": "percentage", "value": Decimal("20"), "description": "20% off your first order", "max_uses_per_user": 1},
    {"code": "WELCOME10", "discount_type": "percentage", "value": Decimal("10"), "min_order_amount": Decimal("50"), "description": "10% off orders of 50 or more"},
]

async def seed_demo_data(db: AsyncSession) -> int:
    """Insert demo rows that are not present yet; returns how many were created"""
    created = 0

    existing_titles = set((await db.execute(select(Product.title))).scalars().all())
    for fields in DEMO_PRODUCTS:
        if fields["title"] not in existing_titles:
            db.add(Product(**fields))
            created += 1

    existing_codes = set((await db.execute(select(PromoCode.code))).scalars().all())
    for fields in DEMO_PROMO_CODES:
        if fields["code"] not in existing_codes:
            db.add(PromoCode(**fields))
            created += 1

    await db.commit()
    logger.info("Seeded %s demo records", created)
    return created
