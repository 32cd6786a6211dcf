"""API v1 routes aggregation"""

from fastapi import APIRouter

from .cart.router import router as cart_router
from .wishlist.router import router as wishlist_router
from .promo_codes.router import router as promo_codes_router
from .orders.router import router as orders_router
from .payments.router import router as payments_router

# Create v1 router
api_router = APIRouter()

# Include all routers
api_router.include_router(cart_router, prefix="/cart", tags=["Cart"])
api_router.include_router(wishlist_router, prefix="/wishlist", tags=["Wishlist"])
api_router.include_router(promo_codes_router, prefix="/promo-codes", tags=["Promo Codes"])
api_router.include_router(orders_router, prefix="/orders", tags=["Orders"])
api_router.include_router(payments_router, prefix="/payments", tags=["Payments"])
