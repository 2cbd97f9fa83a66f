# app/routers/admin/activities.py
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.schemas.activity_schemas import UserActivityListResponse
from app.services.activity_service import get_user_activities
from app.utils.check_roles import require_role
from app.utils.get_user import get_current_user

router = APIRouter(prefix="/activities", tags=["Admin Activities"])


@router.get("", response_model=UserActivityListResponse)
@require_role(["admin"])
async def list_user_activities(
    db: AsyncSession = Depends(get_db),
    _user=Depends(get_current_user),
    user_id: Optional[int] = Query(None, alias="userId"),
    username: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sort_by: str = Query("created_at", alias="sortBy"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
):
    """
    Admin audit trail: who created, changed or deleted what, newest first.
    """
    page_data = await get_user_activities(
        db=db,
        user_id=user_id,
        username=username,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
        sort_by=sort_by,
        order=order,
    )
    return UserActivityListResponse(message="User activities fetched successfully", **page_data)
