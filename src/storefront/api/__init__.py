"""Storefront API package."""

from storefront.api.errors import register_exception_handlers
from storefront.api.routes import order_router, payment_router

__all__ = ["order_router", "payment_router", "register_exception_handlers"]
