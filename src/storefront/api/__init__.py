"""Storefront API package."""

from storefront.api.admin import admin_router
from storefront.api.application import create_app
from storefront.api.errors import register_error_handlers
from storefront.api.orders import order_router
from storefront.api.payments import payment_router
from storefront.api.products import product_router
from storefront.api.users import user_router

__all__ = [
    "admin_router",
    "create_app",
    "order_router",
    "payment_router",
    "product_router",
    "register_error_handlers",
    "user_router",
]
