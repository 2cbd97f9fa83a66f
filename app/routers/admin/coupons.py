# app/routers/admin/coupons.py
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.base_schemas import MessageResponse
from app.schemas.discount_schemas import CouponCreate, CouponOut, ToggleActive
from app.services.discount_service import create_coupon, delete_coupon, get_all_coupons, set_coupon_active
from app.utils.check_roles import require_role
from app.utils.get_user import get_current_user

router = APIRouter(tags=["Admin Coupons"])


@router.post("/addCoupon", response_model=CouponOut, status_code=201)
@require_role(["admin"])
async def add_coupon(
    payload: CouponCreate,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
):
    """Create a coupon; codes are unique."""
    return await create_coupon(db, payload, _user)


@router.get("/coupons", response_model=List[CouponOut])
@require_role(["admin"])
async def list_coupons(db: AsyncSession = Depends(get_db), _user=Depends(get_current_user)):
    return await get_all_coupons(db)


@router.delete("/coupons/{coupon_id}", response_model=MessageResponse)
@require_role(["admin"])
async def remove_coupon(
    coupon_id: int,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
):
    await delete_coupon(db, coupon_id, _user)
    return MessageResponse(message="Coupon deleted successfully")


@router.put("/coupons/{coupon_id}/status", response_model=CouponOut)
@require_role(["admin"])
async def toggle_coupon(
    coupon_id: int,
    payload: ToggleActive,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
):
    return await set_coupon_active(db, coupon_id, payload.is_active, _user)
