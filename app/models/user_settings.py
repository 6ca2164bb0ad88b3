# app/models/user_settings.py
from sqlalchemy import Column, String, Boolean, ForeignKey
from app.database import Base

class UserSettings(Base):
    """유저 설정"""
    __tablename__ = "user_settings"

    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    emergency_protocol_enabled = Column(Boolean, default=False)
    notifications_enabled = Column(Boolean, default=True)
    theme = Column(String, default="light")  # light, dark, auto
