# app/services/discount_service.py
from datetime import datetime
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.catalog_models import Category, Product, Tag
from app.models.discount_models import Discount, Coupon
from app.schemas.discount_schemas import DiscountCreate, CouponCreate
from app.utils.activity_helpers import log_user_activity
from app.utils.date_filter import utcnow


# -----------------------
# LIVE LOOKUPS
# -----------------------
def live_window(model, now: datetime):
    return and_(model.is_active == True, model.start_date <= now, model.end_date >= now)


async def get_live_discounts(
    db: AsyncSession,
    product_ids: Optional[List[int]] = None,
    category_ids: Optional[List[int]] = None,
    tag_ids: Optional[List[int]] = None,
    now: Optional[datetime] = None,
) -> List[Discount]:
    """
    Active, in-window discounts targeting any of the given products,
    categories or tags, in id order so tag precedence is stable.
    """
    now = now or utcnow()
    targets = []
    if product_ids:
        targets.append(Discount.product_id.in_(product_ids))
    if category_ids:
        targets.append(Discount.category_id.in_(category_ids))
    if tag_ids:
        targets.append(Discount.tag_id.in_(tag_ids))
    if not targets:
        return []

    result = await db.execute(
        select(Discount).where(live_window(Discount, now), or_(*targets)).order_by(Discount.id)
    )
    return list(result.scalars().all())


async def get_live_coupon(db: AsyncSession, code: str, now: Optional[datetime] = None) -> Optional[Coupon]:
    now = now or utcnow()
    result = await db.execute(select(Coupon).where(Coupon.code == code, live_window(Coupon, now)))
    return result.scalars().first()


# -----------------------
# DISCOUNTS
# -----------------------
async def create_discount(db: AsyncSession, payload: DiscountCreate, _user) -> Discount:
    target_model, target_id = (
        (Product, payload.product_id) if payload.product_id is not None
        else (Category, payload.category_id) if payload.category_id is not None
        else (Tag, payload.tag_id)
    )
    if not await db.get(target_model, target_id):
        raise NotFoundError(f"{target_model.__name__} {target_id} not found")

    discount = Discount(**payload.model_dump(), is_active=True)
    db.add(discount)
    await db.flush()

    await log_user_activity(
        db=db,
        actor=_user,
        message=f"created {discount.type} discount {discount.percentage}% (ID: {discount.id})"
    )

    await db.commit()
    await db.refresh(discount)
    return discount


async def get_all_discounts(db: AsyncSession) -> List[Discount]:
    result = await db.execute(select(Discount).order_by(Discount.id.desc()))
    return list(result.scalars().all())


async def get_discount_by_id(db: AsyncSession, discount_id: int) -> Discount:
    discount = await db.get(Discount, discount_id)
    if not discount:
        raise NotFoundError("Discount not found")
    return discount


async def delete_discount(db: AsyncSession, discount_id: int, _user) -> None:
    discount = await get_discount_by_id(db, discount_id)
    await db.delete(discount)

    await log_user_activity(
        db=db,
        actor=_user,
        message=f"deleted discount (ID: {discount_id})"
    )
    await db.commit()


async def set_discount_active(db: AsyncSession, discount_id: int, is_active: bool, _user) -> Discount:
    discount = await get_discount_by_id(db, discount_id)
    discount.is_active = is_active

    await log_user_activity(
        db=db,
        actor=_user,
        message=f"{'activated' if is_active else 'deactivated'} discount (ID: {discount.id})"
    )
    await db.commit()
    await db.refresh(discount)
    return discount


# -----------------------
# COUPONS
# -----------------------
async def create_coupon(db: AsyncSession, payload: CouponCreate, _user) -> Coupon:
    existing = await db.execute(select(Coupon).where(Coupon.code == payload.code))
    if existing.scalar_one_or_none():
        raise ConflictError("Coupon code already exists.")

    coupon = Coupon(**payload.model_dump(), is_active=True)
    db.add(coupon)
    await db.flush()

    await log_user_activity(
        db=db,
        actor=_user,
        message=f"created coupon '{coupon.code}' ({coupon.percentage}%)"
    )

    await db.commit()
    await db.refresh(coupon)
    return coupon


async def get_all_coupons(db: AsyncSession) -> List[Coupon]:
    result = await db.execute(select(Coupon).order_by(Coupon.id.desc()))
    return list(result.scalars().all())


async def get_coupon_by_id(db: AsyncSession, coupon_id: int) -> Coupon:
    if coupon_id <= 0:
        raise ValidationError("Invalid coupon ID")
    coupon = await db.get(Coupon, coupon_id)
    if not coupon:
        raise NotFoundError("Coupon not found")
    return coupon


async def delete_coupon(db: AsyncSession, coupon_id: int, _user) -> None:
    """Orders keep their coupon snapshot; their coupon_id is nulled by the FK."""
    coupon = await get_coupon_by_id(db, coupon_id)
    code = coupon.code
    await db.delete(coupon)

    await log_user_activity(
        db=db,
        actor=_user,
        message=f"deleted coupon '{code}' (ID: {coupon_id})"
    )
    await db.commit()


async def set_coupon_active(db: AsyncSession, coupon_id: int, is_active: bool, _user) -> Coupon:
    coupon = await get_coupon_by_id(db, coupon_id)
    coupon.is_active = is_active

    await log_user_activity(
        db=db,
        actor=_user,
        message=f"{'activated' if is_active else 'deactivated'} coupon '{coupon.code}'"
    )
    await db.commit()
    await db.refresh(coupon)
    return coupon
