# app/utils/get_user.py
from fastapi import Depends, Cookie
from jose import jwt, JWTError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from starlette.requests import Request

from app.models.user_models import User
from app.core.db import get_db
from app.core.config import JWT_SECRET, JWT_ALGORITHM
from app.core.exceptions import AuthError


async def get_current_user(
    request: Request,
    token: str | None = Cookie(default=None),
    db: AsyncSession = Depends(get_db),
) -> User:
    if not token:
        raise AuthError("Access Denied: No token provided")

    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
        user_id = payload.get("id")
        if user_id is None:
            raise AuthError("Invalid token payload")
    except JWTError:
        raise AuthError("Invalid or expired token")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalars().first()
    if not user:
        raise AuthError("User not found")
    if not user.is_active:
        raise AuthError("User account is inactive.", status_code=403)

    request.state.user = user
    return user
