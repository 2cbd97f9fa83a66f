# app/schemas/activity_schemas.py
from datetime import datetime
from typing import Optional, List

from app.schemas.base_schemas import CamelModel


class UserActivityOut(CamelModel):
    id: int
    user_id: Optional[int] = None
    username: Optional[str] = None
    message: str
    created_at: datetime


class UserActivityListResponse(CamelModel):
    message: str
    current_page: int
    total_pages: int
    total_count: int
    activities: List[UserActivityOut]
