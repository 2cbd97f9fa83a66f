# app/models/activity_models.py
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from app.core.db import Base
from app.utils.date_filter import utcnow


class UserActivity(Base):
    """Admin audit trail row."""
    __tablename__ = "user_activity"

    id = Column(Integer, primary_key=True, index=True)
    # Kept after the user is deleted; username stays as written
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    username = Column(String(100), nullable=False, default="system")
    message = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
