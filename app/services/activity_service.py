# app/services/activity_service.py
import math
from datetime import date
from typing import Optional

from sqlalchemy import select, desc, asc, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.activity_models import UserActivity
from app.utils.date_filter import created_between

ALLOWED_SORT_FIELDS = {"id", "user_id", "username", "created_at"}


async def get_user_activities(
    db: AsyncSession,
    user_id: Optional[int] = None,
    username: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: int = 1,
    limit: int = 20,
    sort_by: str = "created_at",
    order: str = "desc",
) -> dict:
    """Audit trail page; unknown sort fields fall back to ``created_at``."""
    if sort_by not in ALLOWED_SORT_FIELDS:
        sort_by = "created_at"

    sort_column = getattr(UserActivity, sort_by)
    sort_order = desc(sort_column) if order.lower() == "desc" else asc(sort_column)

    filters = created_between(UserActivity.created_at, start_date, end_date)
    if user_id:
        filters.append(UserActivity.user_id == user_id)
    if username:
        filters.append(UserActivity.username.ilike(f"%{username}%"))

    stmt = select(UserActivity)
    count_stmt = select(func.count(UserActivity.id))
    if filters:
        stmt = stmt.where(*filters)
        count_stmt = count_stmt.where(*filters)

    total = (await db.execute(count_stmt)).scalar() or 0

    stmt = stmt.order_by(sort_order, desc(UserActivity.id)).offset((page - 1) * limit).limit(limit)
    result = await db.execute(stmt)
    return {
        "current_page": page,
        "total_pages": math.ceil(total / limit),
        "total_count": total,
        "activities": result.scalars().all(),
    }
