# app/routers/customer_router.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.order_schemas import CouponApplyRequest, OrderCreate, OrderResponse, QuoteResponse
from app.services.order_service import apply_coupon, create_order

router = APIRouter(prefix="/customer", tags=["Customer"])


@router.post("/createOrder", response_model=OrderResponse, status_code=201)
async def create_order_route(data: OrderCreate, db: AsyncSession = Depends(get_db)):
    """
    Price the cart against the live catalog and persist the order snapshot,
    decrementing stock in the same transaction.
    """
    return OrderResponse(order=await create_order(db, data))


@router.post("/couponsApply", response_model=QuoteResponse)
async def apply_coupon_route(data: CouponApplyRequest, db: AsyncSession = Depends(get_db)):
    """Quote a cart (discounts and coupon) without persisting anything."""
    return await apply_coupon(db, data)
