# app/schemas/user_schemas.py
from pydantic import BaseModel, EmailStr, Field
from typing import Literal, Optional
from app.schemas.base_schemas import CamelModel

class UserCreate(BaseModel):
    secret: str
    username: str = Field(..., min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    password: str = Field(..., min_length=6)
    role: Literal["admin", "operator"] = "operator"

class UserLogin(BaseModel):
    username: str
    password: str

class UserOut(CamelModel):
    id: int
    username: str
    email: Optional[str] = None
    role: str

class UserCreatedResponse(CamelModel):
    message: str
    user_id: int

class LoginResponse(BaseModel):
    message: str
    user: UserOut

class AuthCheckResponse(BaseModel):
    message: str
    user: dict
