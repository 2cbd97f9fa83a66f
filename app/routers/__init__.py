# app/routers/__init__.py

from .products_router import router as products_router
from .customer_router import router as customer_router
from .admin import router as admin_router

__all__ = [
    "products_router",
    "customer_router",
    "admin_router",
]
