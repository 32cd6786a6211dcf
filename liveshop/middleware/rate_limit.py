"""Rate limiting middleware using slowapi"""

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
import logging

from liveshop.core.config import settings
from liveshop.core.exceptions import UnauthorizedException, error_envelope
from liveshop.core.security import SecurityUtils

logger = logging.getLogger(__name__)

def get_rate_limit_key(request: Request) -> str:
    """Get rate limit key based on token subject or IP"""
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        try:
            return f"user:{SecurityUtils.decode_token(auth[7:])['sub']}"
        except UnauthorizedException:
            pass

    # Fall back to IP address
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        ip = forwarded.split(",")[0].strip()
    else:
        ip = request.client.host if request.client else "unknown"

    return f"ip:{ip}"

# Create limiter instance
limiter = Limiter(
    key_func=get_rate_limit_key,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    headers_enabled=True,
    enabled=settings.RATE_LIMIT_ENABLED
)

async def custom_rate_limit_handler(request: Request, exc: RateLimitExceeded) -> Response:
    logger.warning("Rate limit exceeded for %s on %s", get_rate_limit_key(request), request.url.path)
    response = JSONResponse(
        status_code=429,
        content=error_envelope(f"Too many requests. {exc.detail}", "RATE_LIMIT_EXCEEDED")
    )
    return request.app.state.limiter._inject_headers(response, request.state.view_rate_limit)
