# app/services/order_service.py
import logging
import math
from datetime import date
from typing import Optional, Sequence

from fastapi import HTTPException
from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.config import ORDER_CURRENCY
from app.core.exceptions import NotFoundError, StockConflictError
from app.models.catalog_models import Product
from app.models.order_models import Order, OrderItem, OrderStatus
from app.schemas.order_schemas import (
    CouponApplyRequest,
    CouponSnapshot,
    OrderCreate,
    OrderItemOut,
    OrderOut,
    QuoteLine,
    QuoteResponse,
)
from app.services.discount_service import get_live_coupon, get_live_discounts
from app.services.pricing import CartLine, PricedCart, cart_lines, price_cart, product_ids
from app.utils.activity_helpers import log_user_activity
from app.utils.date_filter import created_between, utcnow

logger = logging.getLogger(__name__)


# =====================================================
# PRICING INPUTS
# =====================================================
async def price_request(db: AsyncSession, lines: Sequence[CartLine], coupon_code: Optional[str]) -> PricedCart:
    """Read the live catalog state for a cart and hand it to the pure calculator."""
    ids = list(product_ids(lines))
    result = await db.execute(select(Product).where(Product.id.in_(ids), Product.is_active == True))
    products = list(result.scalars().all())

    now = utcnow()
    discounts = await get_live_discounts(
        db,
        product_ids=ids,
        category_ids=list({p.category_id for p in products if p.category_id is not None}),
        tag_ids=list({t.id for p in products for t in p.tags}),
        now=now,
    )
    coupon = await get_live_coupon(db, coupon_code, now=now) if coupon_code else None
    return price_cart(lines, products, discounts, coupon_code=coupon_code, coupon=coupon)


# =====================================================
# SERIALIZATION
# =====================================================
def serialize_order(order: Order) -> OrderOut:
    """Build the response from the order's own snapshot columns only."""
    coupon = None
    if order.coupon_code:
        coupon = CouponSnapshot(
            code=order.coupon_code,
            percentage=float(order.coupon_percentage) if order.coupon_percentage is not None else None,
            description=order.coupon_description,
        )
    return OrderOut(
        id=order.id,
        first_name=order.first_name,
        last_name=order.last_name,
        address=order.address,
        mobile_number=order.mobile_number,
        another_mobile=order.another_mobile,
        another_address=order.another_address,
        customer_email=order.customer_email,
        total_amount=float(order.total_amount),
        currency=order.currency,
        status=order.status,
        coupon=coupon,
        created_at=order.created_at,
        updated_at=order.updated_at,
        items=[OrderItemOut.model_validate(item) for item in order.items],
    )


def quote_response(priced: PricedCart) -> QuoteResponse:
    return QuoteResponse(
        discounted_items=[
            QuoteLine(
                product_id=line.product_id,
                name=line.name,
                quantity=line.quantity,
                original_price=float(line.original_price),
                discount_applied=float(line.discount_applied),
                price_after_discount=float(line.price_after_discount),
                line_total=float(line.line_total),
                image_url=line.image_url,
            )
            for line in priced.lines
        ],
        subtotal=float(priced.subtotal),
        coupon_code=priced.coupon_code,
        coupon_discount_amount=float(priced.coupon_discount_amount),
        total_after_discount=float(priced.total),
    )


# =====================================================
# QUOTE
# =====================================================
async def apply_coupon(db: AsyncSession, data: CouponApplyRequest) -> QuoteResponse:
    """Price a cart without persisting anything."""
    priced = await price_request(db, cart_lines(data.items), data.coupon_code)
    return quote_response(priced)


# =====================================================
# COMMIT
# =====================================================
async def decrement_stock(db: AsyncSession, product_id: int, quantity: int) -> None:
    """Take ``quantity`` units only if that many are still in stock."""
    result = await db.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock >= quantity)
        .values(stock=Product.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise StockConflictError(product_id=product_id, quantity=quantity)


async def persist_order(db: AsyncSession, data: OrderCreate, priced: PricedCart) -> Order:
    """
    Write the order, its item snapshots and the stock decrements in one
    transaction. Any failure rolls all of it back.
    """
    # A coupon below its minimum order amount is not recorded on the order
    coupon = priced.coupon if priced.coupon_applied else None
    order = Order(
        first_name=data.first_name,
        last_name=data.last_name,
        address=data.address,
        mobile_number=data.mobile_number,
        another_mobile=data.another_mobile,
        another_address=data.another_address,
        customer_email=data.customer_email,
        total_amount=priced.total,
        currency=ORDER_CURRENCY,
        status=OrderStatus.pending,
        coupon_id=coupon.id if coupon is not None else None,
        coupon_code=coupon.code if coupon is not None else None,
        coupon_percentage=coupon.percentage if coupon is not None else None,
        coupon_description=coupon.description if coupon is not None else None,
        items=[
            OrderItem(
                product_id=line.product_id,
                quantity=line.quantity,
                price_at_purchase=line.price_after_discount,
                product_name=line.name,
                product_image_url=line.image_url,
                product_category=str(line.category_id) if line.category_id is not None else None,
                discount_applied=line.discount_applied,
                discount_id=line.discount_id,
            )
            for line in priced.lines
        ],
    )

    try:
        db.add(order)
        await db.flush()
        for line in priced.lines:
            await decrement_stock(db, line.product_id, line.quantity)
        await db.commit()
    except StockConflictError as exc:
        await db.rollback()
        logger.warning("Stock conflict on product %s (wanted %s); order rolled back", exc.product_id, exc.quantity)
        raise
    except HTTPException:
        await db.rollback()
        raise
    except Exception:
        await db.rollback()
        logger.exception("Create order failed")
        raise HTTPException(status_code=500, detail="Internal server error")

    logger.info("Order %s created: %d line(s), total %s", order.id, len(order.items), order.total_amount)
    return order


async def create_order(db: AsyncSession, data: OrderCreate) -> OrderOut:
    priced = await price_request(db, cart_lines(data.items), data.coupon_code)
    order = await persist_order(db, data, priced)
    return serialize_order(order)


# =====================================================
# ADMIN READS / STATUS
# =====================================================
async def list_orders(
    db: AsyncSession,
    page: int = 1,
    limit: int = 10,
    status: Optional[OrderStatus] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> dict:
    filters = created_between(Order.created_at, start_date, end_date)
    if status:
        filters.append(Order.status == status)

    count_stmt = select(func.count(Order.id))
    stmt = select(Order)
    if filters:
        count_stmt = count_stmt.where(*filters)
        stmt = stmt.where(*filters)

    total = (await db.execute(count_stmt)).scalar() or 0
    stmt = stmt.order_by(Order.created_at.desc(), Order.id.desc()).offset((page - 1) * limit).limit(limit)
    orders = (await db.execute(stmt)).scalars().all()

    return {
        "current_page": page,
        "total_pages": math.ceil(total / limit),
        "total_count": total,
        "orders": [serialize_order(o) for o in orders],
    }


async def get_order(db: AsyncSession, order_id: int) -> OrderOut:
    result = await db.execute(select(Order).where(Order.id == order_id))
    order = result.scalars().first()
    if not order:
        raise NotFoundError("Order not found.")
    return serialize_order(order)


async def update_order_status(db: AsyncSession, order_id: int, status: OrderStatus, current_user) -> OrderOut:
    """Admin-set status; no transition rules are enforced."""
    result = await db.execute(select(Order).where(Order.id == order_id))
    order = result.scalars().first()
    if not order:
        raise NotFoundError("Order not found.")

    previous = order.status
    order.status = status
    await log_user_activity(
        db,
        actor=current_user,
        message=f"changed order {order.id} status: {previous.value} → {status.value}"
    )
    await db.commit()

    result = await db.execute(
        select(Order).where(Order.id == order_id).execution_options(populate_existing=True)
    )
    return serialize_order(result.scalars().first())
