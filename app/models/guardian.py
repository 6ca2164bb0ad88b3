# app/models/guardian.py
from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func
from app.database import Base
import secrets
import uuid

class Guardian(Base):
    """보호자 (신뢰하는 사람) 모델"""
    __tablename__ = "guardians"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    relationship = Column(String, nullable=True)  # 자녀, 손주, 친구 ...
    role = Column(String, nullable=False, default="viewer")
    notes = Column(Text, nullable=True)
    access_type = Column(String, nullable=False, default="normal")  # normal, emergency, memorial

    # 보호자 전용 접근 토큰 (/api/guardian-access/{token})
    access_token = Column(String(64), nullable=False, unique=True, index=True, default=lambda: secrets.token_urlsafe(16))

    # PIN 해시 (응답에 노출 금지)
    access_pin_hash = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def has_pin(self) -> bool:
        return bool(self.access_pin_hash)

    def __repr__(self):
        return f"<Guardian {self.id}>"
