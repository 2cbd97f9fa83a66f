# app/routers/admin/discounts.py
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.base_schemas import MessageResponse
from app.schemas.discount_schemas import DiscountCreate, DiscountOut, ToggleActive
from app.services.discount_service import create_discount, delete_discount, get_all_discounts, set_discount_active
from app.utils.check_roles import require_role
from app.utils.get_user import get_current_user

router = APIRouter(tags=["Admin Discounts"])


@router.post("/addDiscount", response_model=DiscountOut, status_code=201)
@require_role(["admin"])
async def add_discount(
    payload: DiscountCreate,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
):
    """
    Create a percentage discount for exactly one product, category or tag,
    live between ``startDate`` and ``endDate``.
    """
    return await create_discount(db, payload, _user)


@router.get("/discounts", response_model=List[DiscountOut])
@require_role(["admin"])
async def list_discounts(db: AsyncSession = Depends(get_db), _user=Depends(get_current_user)):
    return await get_all_discounts(db)


@router.delete("/discounts/{discount_id}", response_model=MessageResponse)
@require_role(["admin"])
async def remove_discount(
    discount_id: int,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
):
    await delete_discount(db, discount_id, _user)
    return MessageResponse(message="Discount deleted successfully")


@router.patch("/discounts/{discount_id}", response_model=DiscountOut)
@require_role(["admin"])
async def toggle_discount(
    discount_id: int,
    payload: ToggleActive,
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
):
    return await set_discount_active(db, discount_id, payload.is_active, _user)
