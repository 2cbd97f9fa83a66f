# app/utils/activity_helpers.py
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.activity_models import UserActivity
from app.models.user_models import User


async def log_user_activity(
    db: AsyncSession,
    actor: Optional[User] = None,
    message: str = "",
    commit: bool = False,
):
    """
    Adds an audit row to the session, prefixed with the actor's role
    (``"Admin created coupon 'EID10' (10%)"``). Without an actor the row is
    attributed to ``system``. The caller is responsible for the commit.
    """
    if actor is not None:
        message = f"{actor.role.capitalize()} {message}"
    activity = UserActivity(
        user_id=actor.id if actor is not None else None,
        username=actor.username if actor is not None else "system",
        message=message,
    )
    db.add(activity)
    if commit:
        await db.commit()
