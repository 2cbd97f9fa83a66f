# app/routers/admin/auth.py
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import ACCESS_TOKEN_EXPIRE_MINUTES, IS_PRODUCTION, TOKEN_COOKIE_NAME
from app.core.db import get_db
from app.schemas.user_schemas import (
    AuthCheckResponse,
    LoginResponse,
    UserCreate,
    UserCreatedResponse,
    UserLogin,
    UserOut,
)
from app.services.auth_service import login_user, register_user
from app.utils.get_user import get_current_user

router = APIRouter(tags=["Auth"])


@router.post("/register", response_model=UserCreatedResponse)
async def register(data: UserCreate, db: AsyncSession = Depends(get_db)):
    """Register an admin or operator. Requires the bootstrap secret."""
    user = await register_user(db, data)
    return UserCreatedResponse(message="User created successfully", user_id=user.id)


@router.post("/login", response_model=LoginResponse)
async def login(data: UserLogin, response: Response, db: AsyncSession = Depends(get_db)):
    user, token = await login_user(db, data.username, data.password)
    response.set_cookie(
        key=TOKEN_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=IS_PRODUCTION,
        samesite="strict",
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return LoginResponse(message="Login successful", user=UserOut.model_validate(user))


@router.get("/auth/check", response_model=AuthCheckResponse)
async def check(_user=Depends(get_current_user)):
    return AuthCheckResponse(message="Authenticated", user={"id": _user.id, "role": _user.role})
