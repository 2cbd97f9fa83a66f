from fastapi import APIRouter

from .auth import router as auth_router
from .products import router as products_router
from .orders import router as orders_router
from .coupons import router as coupons_router
from .discounts import router as discounts_router
from .dashboard import router as dashboard_router
from .activities import router as activities_router
from .categories import router as categories_router

router = APIRouter(prefix="/admin")

router.include_router(auth_router)
router.include_router(products_router)
router.include_router(orders_router)
router.include_router(coupons_router)
router.include_router(discounts_router)
router.include_router(dashboard_router)
router.include_router(activities_router)
router.include_router(categories_router)
