"""Shared request/response schemas"""

from .base import BaseSchema, Money, success_response
from .address import AddressInfo, address_errors
from .product import ProductAttributes, ProductSummary

__all__ = [
    "BaseSchema",
    "Money",
    "success_response",
    "AddressInfo",
    "address_errors",
    "ProductAttributes",
    "ProductSummary",
]
