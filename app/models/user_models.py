from sqlalchemy import Column, Integer, String, Boolean, DateTime
from app.core.db import Base
from app.utils.date_filter import utcnow

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False, index=True)
    email = Column(String, nullable=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default="operator")
    is_active = Column(Boolean, default=True)

    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
