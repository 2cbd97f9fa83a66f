# app/services/dashboard_service.py
"""
Sales analytics.

Persisted ``total_amount`` already includes the coupon deduction while the
stored item prices do not, so every per-line figure is re-derived by
splitting the order total back over its lines in proportion to their
pre-coupon totals (the same split used when pricing the order).
"""
from collections import OrderedDict
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import func, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.catalog_models import Category, Product
from app.models.discount_models import Coupon
from app.models.order_models import Order, OrderItem, SALES_STATUSES, COUPON_USAGE_STATUSES
from app.utils.date_filter import created_between, utcnow
from app.utils.proportional import present, split_proportionally, to_decimal

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
HOUR_BUCKET = 3


@dataclass
class SalesLine:
    order_id: int
    order_total: Decimal
    product_id: Optional[int]
    product_name: str
    quantity: int
    price_at_purchase: Decimal
    category_id: Optional[int] = None
    category_name: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return to_decimal(self.price_at_purchase) * self.quantity


# ---------------------------------------------------
# PURE AGGREGATION
# ---------------------------------------------------
def allocate_sales(lines: Iterable[SalesLine]) -> List[Tuple[SalesLine, Decimal]]:
    """Pair every line with its share of its order's persisted total."""
    by_order = OrderedDict()
    for line in lines:
        by_order.setdefault(line.order_id, []).append(line)

    allocated = []
    for order_lines in by_order.values():
        shares = split_proportionally([l.line_total for l in order_lines], order_lines[0].order_total)
        allocated.extend(zip(order_lines, shares))
    return allocated


def aggregate_by_product(lines: Iterable[SalesLine]) -> List[dict]:
    totals = OrderedDict()
    for line, share in allocate_sales(lines):
        entry = totals.setdefault(line.product_id, {
            "product_id": line.product_id,
            "product_name": line.product_name,
            "total_sales": Decimal("0"),
            "total_quantity": 0,
        })
        entry["total_sales"] += share
        entry["total_quantity"] += line.quantity
    return [{**e, "total_sales": present(e["total_sales"])} for e in totals.values()]


def aggregate_by_category(lines: Iterable[SalesLine]) -> List[dict]:
    totals = OrderedDict()
    for line, share in allocate_sales(lines):
        # Products deleted or left uncategorized since the sale are skipped
        if line.category_id is None:
            continue
        entry = totals.setdefault(line.category_id, {
            "category_id": line.category_id,
            "category_name": line.category_name,
            "total_sales": Decimal("0"),
            "total_quantity": 0,
        })
        entry["total_sales"] += share
        entry["total_quantity"] += line.quantity
    return [{**e, "total_sales": present(e["total_sales"])} for e in totals.values()]


def summarize(totals: Sequence) -> dict:
    total_sales = sum((to_decimal(t) for t in totals), Decimal("0"))
    count = len(totals)
    return {
        "total_sales": present(total_sales),
        "order_count": count,
        "average_order_value": present(total_sales / count) if count else 0,
    }


def bucket_by_time(orders: Iterable[Tuple[datetime, Decimal]]) -> dict:
    """Sales per 3-hour window of the day and per weekday (Sunday first)."""
    by_hour = {h: Decimal("0") for h in range(0, 24, HOUR_BUCKET)}
    by_day = [Decimal("0")] * 7

    for created_at, total in orders:
        by_hour[(created_at.hour // HOUR_BUCKET) * HOUR_BUCKET] += to_decimal(total)
        # weekday(): Monday=0
        by_day[(created_at.weekday() + 1) % 7] += to_decimal(total)

    return {
        "by_hour": [{"hour": h, "total_sales": present(v)} for h, v in by_hour.items()],
        "by_day_of_week": [{"day": DAY_NAMES[i], "total_sales": present(v)} for i, v in enumerate(by_day)],
    }


def monthly_trend(orders: Iterable[Tuple[datetime, Decimal]], year: int) -> List[dict]:
    """Twelve zero-filled months of ``year`` plus any other month that had sales."""
    months = {f"{year}-{m:02d}": {"total_sales": Decimal("0"), "order_count": 0} for m in range(1, 13)}
    for created_at, total in orders:
        entry = months.setdefault(created_at.strftime("%Y-%m"), {"total_sales": Decimal("0"), "order_count": 0})
        entry["total_sales"] += to_decimal(total)
        entry["order_count"] += 1

    return [
        {"month": key, "total_sales": present(v["total_sales"]), "order_count": v["order_count"]}
        for key, v in sorted(months.items())
    ]


# ---------------------------------------------------
# QUERIES
# ---------------------------------------------------
def _sales_filters(start_date: Optional[date], end_date: Optional[date], statuses=SALES_STATUSES) -> list:
    return [Order.status.in_(statuses), *created_between(Order.created_at, start_date, end_date)]


async def _order_totals(db: AsyncSession, start_date, end_date) -> List[Tuple[datetime, Decimal]]:
    result = await db.execute(
        select(Order.created_at, Order.total_amount).where(*_sales_filters(start_date, end_date))
    )
    return [(row.created_at, row.total_amount) for row in result.all()]


async def _sales_lines(db: AsyncSession, start_date, end_date) -> List[SalesLine]:
    stmt = (
        select(
            OrderItem.order_id,
            Order.total_amount,
            OrderItem.product_id,
            OrderItem.product_name,
            OrderItem.quantity,
            OrderItem.price_at_purchase,
            Category.id.label("category_id"),
            Category.name.label("category_name"),
        )
        .join(Order, Order.id == OrderItem.order_id)
        .outerjoin(Product, Product.id == OrderItem.product_id)
        .outerjoin(Category, Category.id == Product.category_id)
        .where(*_sales_filters(start_date, end_date))
        .order_by(OrderItem.order_id, OrderItem.id)
    )
    result = await db.execute(stmt)
    return [
        SalesLine(
            order_id=row.order_id,
            order_total=row.total_amount,
            product_id=row.product_id,
            product_name=row.product_name,
            quantity=row.quantity,
            price_at_purchase=row.price_at_purchase,
            category_id=row.category_id,
            category_name=row.category_name,
        )
        for row in result.all()
    ]


async def get_summary(db: AsyncSession, start_date=None, end_date=None) -> dict:
    orders = await _order_totals(db, start_date, end_date)
    return summarize([total for _, total in orders])


async def get_sales_by_product(db: AsyncSession, start_date=None, end_date=None) -> List[dict]:
    return aggregate_by_product(await _sales_lines(db, start_date, end_date))


async def get_sales_by_category(db: AsyncSession, start_date=None, end_date=None) -> List[dict]:
    return aggregate_by_category(await _sales_lines(db, start_date, end_date))


async def get_top_products(db: AsyncSession, start_date=None, end_date=None, limit: int = 5) -> List[dict]:
    quantity_sold = func.sum(OrderItem.quantity).label("quantity_sold")
    stmt = (
        select(OrderItem.product_id, OrderItem.product_name, OrderItem.product_image_url, quantity_sold)
        .join(Order, Order.id == OrderItem.order_id)
        .where(*_sales_filters(start_date, end_date))
        .group_by(OrderItem.product_id, OrderItem.product_name, OrderItem.product_image_url)
        .order_by(quantity_sold.desc(), OrderItem.product_id)
        .limit(limit)
    )
    result = await db.execute(stmt)
    return [
        {
            "product_id": row.product_id,
            "product_name": row.product_name,
            "image_url": row.product_image_url,
            "quantity_sold": int(row.quantity_sold or 0),
        }
        for row in result.all()
    ]


async def get_low_stock_products(db: AsyncSession, threshold: int = 5) -> List[dict]:
    stmt = (
        select(Product.id, Product.name, Product.stock, Product.image_url, Category.name.label("category_name"))
        .outerjoin(Category, Category.id == Product.category_id)
        .where(Product.stock < threshold, Product.is_active == True)
        .order_by(Product.stock.asc(), Product.id)
    )
    result = await db.execute(stmt)
    return [dict(row._mapping) for row in result.all()]


async def get_coupon_usage(db: AsyncSession, start_date=None, end_date=None) -> List[dict]:
    """Every coupon with the number of orders (pending included) that used it."""
    used_count = func.count(Order.id).label("used_count")
    stmt = (
        select(Coupon, used_count)
        .outerjoin(Order, and_(
            Order.coupon_id == Coupon.id,
            *_sales_filters(start_date, end_date, COUPON_USAGE_STATUSES),
        ))
        .group_by(Coupon.id)
        .order_by(Coupon.id)
    )
    result = await db.execute(stmt)
    return [
        {
            "id": coupon.id,
            "code": coupon.code,
            "description": coupon.description,
            "percentage": float(coupon.percentage),
            "is_active": coupon.is_active,
            "start_date": coupon.start_date,
            "end_date": coupon.end_date,
            "used_count": count,
        }
        for coupon, count in result.all()
    ]


async def get_best_time_to_sell(db: AsyncSession, start_date=None, end_date=None) -> dict:
    return bucket_by_time(await _order_totals(db, start_date, end_date))


async def get_monthly_sales(db: AsyncSession, start_date=None, end_date=None) -> List[dict]:
    year = start_date.year if start_date else utcnow().year
    return monthly_trend(await _order_totals(db, start_date, end_date), year)
