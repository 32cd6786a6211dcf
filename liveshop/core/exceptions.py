"""
Custom exception classes and error handlers
Provides consistent error envelopes across the application
"""

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)

class LiveShopException(HTTPException):
    """Base exception class for LiveShop application"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None,
        extra: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code
        self.extra = extra or {}

class BadRequestException(LiveShopException):
    """400 Bad Request"""

    def __init__(self, detail: str, error_code: str = "BAD_REQUEST", extra: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code=error_code,
            extra=extra
        )

class UnauthorizedException(LiveShopException):
    """401 Unauthorized"""

    def __init__(self, detail: str = "Unauthorized", error_code: str = "UNAUTHORIZED"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code=error_code,
            headers={"WWW-Authenticate": "Bearer"}
        )

class ForbiddenException(LiveShopException):
    """403 Forbidden"""

    def __init__(self, detail: str = "Forbidden", error_code: str = "FORBIDDEN"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code=error_code
        )

class NotFoundException(LiveShopException):
    """404 Not Found"""

    def __init__(self, detail: str = "Not found", error_code: str = "NOT_FOUND"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code=error_code
        )

class ConflictException(LiveShopException):
    """409 Conflict"""

    def __init__(self, detail: str, error_code: str = "CONFLICT", extra: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code=error_code,
            extra=extra
        )

# Business logic exceptions
class InsufficientInventoryException(BadRequestException):
    """Product inventory insufficient"""

    def __init__(self, product_name: str, available: int):
        super().__init__(
            detail=f"Insufficient inventory for {product_name}. Only {available} available.",
            error_code="INSUFFICIENT_INVENTORY",
            extra={"available": available}
        )
        self.available = available

class InvalidPromoCodeException(BadRequestException):
    """Promo code cannot be applied"""

    def __init__(self, detail: str = "Invalid promo code"):
        super().__init__(
            detail=detail,
            error_code="INVALID_PROMO_CODE"
        )

class InvalidPaymentException(BadRequestException):
    """Payment validation failed"""

    def __init__(self, detail: str):
        super().__init__(
            detail=detail,
            error_code="PAYMENT_FAILED"
        )

class InvalidStatusTransitionException(BadRequestException):
    """Order status change not allowed"""

    def __init__(self, current: str, requested: str):
        super().__init__(
            detail=f"Cannot change order status from {current} to {requested}",
            error_code="INVALID_STATUS_TRANSITION"
        )

class OrderNotCancellableException(BadRequestException):
    """Order cannot be cancelled"""

    def __init__(self, detail: str = "Order cannot be cancelled in current status"):
        super().__init__(
            detail=detail,
            error_code="ORDER_NOT_CANCELLABLE"
        )

def error_envelope(message: str, code: str, **extra: Any) -> Dict[str, Any]:
    """Build the failure envelope returned by every endpoint"""
    body = {"success": False, "error": message, "code": code}
    body.update(extra)
    return body

async def liveshop_exception_handler(request: Request, exc: LiveShopException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(str(exc.detail), exc.error_code or "ERROR", **exc.extra),
        headers=exc.headers
    )

async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(str(exc.detail), "HTTP_ERROR"),
        headers=getattr(exc, "headers", None)
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies are reported as 400 with a readable error string"""
    errors = exc.errors()
    fields = {}
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        fields[".".join(location) or "body"] = error.get("msg", "Invalid value")

    message = "; ".join(f"{field}: {msg}" for field, msg in fields.items()) or "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_envelope(message, "VALIDATION_ERROR", fields=fields)
    )

def register_exception_handlers(app: FastAPI) -> None:
    """Attach the envelope handlers to the application"""
    app.add_exception_handler(LiveShopException, liveshop_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
