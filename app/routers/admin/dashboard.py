# app/routers/admin/dashboard.py
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.dashboard_schemas import (
    BestTimeToSell,
    CategorySales,
    CouponUsage,
    DashboardSummary,
    LowStockProduct,
    MonthlySales,
    ProductSales,
    TopProduct,
)
from app.services import dashboard_service
from app.utils.check_roles import require_role
from app.utils.get_user import get_current_user

router = APIRouter(prefix="/dashboard", tags=["Admin Dashboard"])


class DateRange:
    """Optional inclusive ``startDate``/``endDate`` query bounds."""

    def __init__(
        self,
        start_date: Optional[date] = Query(None, alias="startDate"),
        end_date: Optional[date] = Query(None, alias="endDate"),
    ):
        self.start_date = start_date
        self.end_date = end_date


@router.get("/summary", response_model=DashboardSummary)
@require_role(["admin"])
async def summary(
    period: DateRange = Depends(),
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
):
    return await dashboard_service.get_summary(db, period.start_date, period.end_date)


@router.get("/salesByProduct", response_model=List[ProductSales])
@require_role(["admin"])
async def sales_by_product(
    period: DateRange = Depends(),
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
):
    return await dashboard_service.get_sales_by_product(db, period.start_date, period.end_date)


@router.get("/salesByCategory", response_model=List[CategorySales])
@require_role(["admin"])
async def sales_by_category(
    period: DateRange = Depends(),
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
):
    return await dashboard_service.get_sales_by_category(db, period.start_date, period.end_date)


@router.get("/topProducts", response_model=List[TopProduct])
@require_role(["admin"])
async def top_products(
    period: DateRange = Depends(),
    limit: int = Query(5, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
):
    return await dashboard_service.get_top_products(db, period.start_date, period.end_date, limit)


@router.get("/lowStockProducts", response_model=List[LowStockProduct])
@require_role(["admin"])
async def low_stock_products(
    threshold: int = Query(5, ge=0),
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
):
    return await dashboard_service.get_low_stock_products(db, threshold)


@router.get("/couponUsage", response_model=List[CouponUsage])
@require_role(["admin"])
async def coupon_usage(
    period: DateRange = Depends(),
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
):
    return await dashboard_service.get_coupon_usage(db, period.start_date, period.end_date)


@router.get("/bestTimeToSell", response_model=BestTimeToSell)
@require_role(["admin"])
async def best_time_to_sell(
    period: DateRange = Depends(),
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
):
    return await dashboard_service.get_best_time_to_sell(db, period.start_date, period.end_date)


@router.get("/monthlySales", response_model=List[MonthlySales])
@require_role(["admin"])
async def monthly_sales(
    period: DateRange = Depends(),
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
):
    return await dashboard_service.get_monthly_sales(db, period.start_date, period.end_date)
