"""
Async client for the LiveShop REST API

Unwraps the response envelopes and turns every failure into a ShopError so
the stores never see raw HTTP.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional
import logging

import httpx

from liveshop.core.config import settings
from .errors import (
    Conflict,
    InsufficientInventory,
    NetworkError,
    NotFound,
    ServerError,
    ShopError,
    Unauthenticated,
    ValidationError,
)

logger = logging.getLogger(__name__)

class ShopApiClient:
    """
    Thin async wrapper over the /api/v1 endpoints

    Usage:
        async with ShopApiClient("http://localhost:8000/api/v1", token=token) as api:
            cart = await api.get_cart()
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout if timeout is not None else settings.CLIENT_TIMEOUT_SECONDS
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self):
        await self._client.aclose()

    @property
    def authenticated(self) -> bool:
        return bool(self.token)

    def set_token(self, token: Optional[str]) -> None:
        self.token = token

    @staticmethod
    def _error_for(status_code: int, body: Dict[str, Any]) -> ShopError:
        """Map an HTTP failure onto the client error taxonomy"""
        message = body.get("error") or body.get("detail") or f"Request failed with status {status_code}"
        code = body.get("code")
        kwargs = {"status_code": status_code, "payload": body}

        if status_code == 401:
            return Unauthenticated(message, **kwargs)
        if status_code == 404:
            return NotFound(message, **kwargs)
        if status_code == 409:
            return Conflict(message, **kwargs)
        if status_code == 400 and code == "INSUFFICIENT_INVENTORY":
            return InsufficientInventory(message, available=body.get("available"), **kwargs)
        if status_code in (400, 422):
            return ValidationError(message, fields=body.get("fields") or {}, **kwargs)
        if status_code >= 500:
            return ServerError(message, **kwargs)
        return ShopError(message, **kwargs)

    async def _request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        if not self.authenticated:
            raise Unauthenticated("Please sign in to continue")

        headers = {"Authorization": f"Bearer {self.token}"}
        try:
            response = await self._client.request(method, path, json=json, params=params, headers=headers)
        except httpx.TimeoutException as e:
            logger.warning("%s %s timed out after %ss", method, path, self.timeout)
            raise NetworkError("The request timed out. Please try again.") from e
        except httpx.TransportError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise NetworkError("Could not reach the server. Check your connection.") from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if not isinstance(body, dict):
            body = {"data": body}

        if response.is_success:
            return body

        error = self._error_for(response.status_code, body)
        logger.info("%s %s -> %s %s", method, path, response.status_code, error.code)
        raise error

    async def _data(self, method: str, path: str, **kwargs: Any) -> Any:
        return (await self._request(method, path, **kwargs)).get("data")

    # Cart

    async def get_cart(self) -> Dict[str, Any]:
        return await self._data("GET", "/cart")

    async def add_to_cart(self, product_id: str, quantity: int = 1) -> Dict[str, Any]:
        return await self._data("POST", "/cart", json={"product_id": str(product_id), "quantity": quantity})

    async def update_cart_item(self, item_id: str, quantity: int) -> Dict[str, Any]:
        return await self._data("PUT", f"/cart/{item_id}", json={"quantity": quantity})

    async def remove_cart_item(self, item_id: str) -> Dict[str, Any]:
        return await self._data("DELETE", f"/cart/{item_id}")

    async def clear_cart(self) -> Dict[str, Any]:
        return await self._data("DELETE", "/cart")

    async def sync_cart(self) -> Dict[str, Any]:
        return await self._data("POST", "/cart/sync")

    # Wishlist

    async def get_wishlist(self) -> Dict[str, Any]:
        return await self._data("GET", "/wishlist")

    async def add_to_wishlist(self, product_id: str) -> Dict[str, Any]:
        return await self._data("POST", "/wishlist", json={"product_id": str(product_id)})

    async def remove_from_wishlist(self, product_id: str) -> Dict[str, Any]:
        return await self._data("DELETE", "/wishlist", json={"product_id": str(product_id)})

    # Promo codes

    async def validate_promo_code(
        self,
        code: str,
        subtotal: Decimal,
        categories: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"code": code, "subtotal": str(subtotal)}
        if categories is not None:
            payload["categories"] = categories
        return await self._data("POST", "/promo-codes/validate", json=payload)

    # Orders

    async def create_order(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._data("POST", "/orders", json=payload)

    async def list_orders(self, page: int = 1, limit: int = 10, status: Optional[str] = None) -> Dict[str, Any]:
        params: Dict[str, Any] = {"page": page, "limit": limit}
        if status:
            params["status"] = status
        return await self._data("GET", "/orders", params=params)

    async def get_order(self, order_id: str) -> Dict[str, Any]:
        return await self._data("GET", f"/orders/{order_id}")

    async def cancel_order(self, order_id: str, reason: Optional[str] = None) -> Dict[str, Any]:
        return await self._data("POST", f"/orders/{order_id}/cancel", json={"reason": reason})

    # Payments

    async def create_payment(self, order_id: str) -> Dict[str, Any]:
        return await self._data("POST", "/payments/create", json={"order_id": str(order_id)})

    async def verify_payment(
        self,
        order_id: str,
        razorpay_order_id: str,
        razorpay_payment_id: str,
        razorpay_signature: str
    ) -> Dict[str, Any]:
        return await self._data("POST", "/payments/verify", json={
            "order_id": str(order_id),
            "razorpay_order_id": razorpay_order_id,
            "razorpay_payment_id": razorpay_payment_id,
            "razorpay_signature": razorpay_signature,
        })
