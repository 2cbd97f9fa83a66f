# app/routers/admin/orders.py
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.models.order_models import OrderStatus
from app.schemas.order_schemas import OrderListResponse, OrderOut, OrderStatusResponse, OrderStatusUpdate
from app.services.order_service import get_order, list_orders, update_order_status
from app.utils.check_roles import require_role
from app.utils.get_user import get_current_user

router = APIRouter(prefix="/orders", tags=["Admin Orders"])

ORDER_ROLES = ["admin", "operator"]


@router.get("", response_model=OrderListResponse)
@require_role(ORDER_ROLES)
async def get_orders(
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[OrderStatus] = Query(None),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
):
    return await list_orders(db, page, limit, status, start_date, end_date)


@router.get("/{order_id}", response_model=OrderOut)
@require_role(ORDER_ROLES)
async def get_order_by_id(
    order_id: int,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
):
    return await get_order(db, order_id)


@router.put("/{order_id}", response_model=OrderStatusResponse)
@require_role(ORDER_ROLES)
async def update_status(
    order_id: int,
    data: OrderStatusUpdate,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
):
    order = await update_order_status(db, order_id, data.status, _user)
    return OrderStatusResponse(message="Order status updated successfully", order=order)
