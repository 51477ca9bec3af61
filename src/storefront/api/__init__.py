"""Storefront HTTP API."""

from storefront.api.errors import register_exception_handlers
from storefront.api.routes import (
    cart_router,
    comparison_router,
    delivery_router,
    loyalty_router,
    order_router,
    payment_router,
    product_router,
    promocode_router,
    wishlist_router,
)

routers = [
    product_router,
    cart_router,
    wishlist_router,
    comparison_router,
    promocode_router,
    order_router,
    payment_router,
    delivery_router,
    loyalty_router,
]

__all__ = [
    "cart_router",
    "comparison_router",
    "delivery_router",
    "loyalty_router",
    "order_router",
    "payment_router",
    "product_router",
    "promocode_router",
    "register_exception_handlers",
    "routers",
    "wishlist_router",
]
