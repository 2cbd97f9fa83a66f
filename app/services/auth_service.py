# app/services/auth_service.py
import logging
from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.user_models import User
from app.core.config import ADMIN_CREATION_SECRET
from app.core.exceptions import AuthError, ConflictError
from app.core.security import hash_password, verify_password, create_access_token
from app.schemas.user_schemas import UserCreate
from app.utils.date_filter import utcnow

logger = logging.getLogger(__name__)


async def register_user(db: AsyncSession, data: UserCreate) -> User:
    """
    Create an admin or operator account. Only callers that know the
    bootstrap secret may do this.
    """
    if not ADMIN_CREATION_SECRET or data.secret != ADMIN_CREATION_SECRET:
        raise AuthError("Forbidden: Invalid secret", status_code=status.HTTP_403_FORBIDDEN)

    existing = await db.execute(select(User).where(User.username == data.username))
    if existing.scalars().first():
        raise ConflictError(f"Username '{data.username}' is already taken")

    try:
        user = User(
            username=data.username,
            email=data.email,
            password_hash=hash_password(data.password),
            role=data.role,
            is_active=True,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        logger.info("Created %s user '%s'", user.role, user.username)
        return user
    except Exception:
        await db.rollback()
        logger.exception("Error creating user")
        raise HTTPException(status_code=500, detail="Error creating user")


async def authenticate_user(db: AsyncSession, username: str, password: str):
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalars().first()
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        raise AuthError("Invalid credentials")
    return user


async def login_user(db: AsyncSession, username: str, password: str):
    """Return the user and a signed ``{id, role}`` credential."""
    user = await authenticate_user(db, username, password)
    token = create_access_token({"id": user.id, "role": user.role})

    user.last_login = utcnow()
    await db.commit()
    return user, token
