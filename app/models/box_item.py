# app/models/box_item.py
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func
from app.database import Base
import uuid
import enum

class ItemType(str, enum.Enum):
    """박스 아이템 종류"""
    INFO = "info"          # 중요한 정보
    MEMORY = "memory"      # 추억/메시지
    NOTE = "note"          # 개인 메모
    ACCESS = "access"      # 접근 방법 안내 (비밀번호 자체는 X)
    ROUTINE = "routine"    # 멈추면 안 되는 일상
    LOCATION = "location"  # 물건 위치

class BoxItem(Base):
    """박스 아이템 모델 (title, content, recipient는 암호화 저장)"""
    __tablename__ = "box_items"

    # 기본 필드
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String, nullable=False, default=ItemType.INFO.value)

    # 암호화 필드
    title = Column(Text, nullable=False)
    content = Column(Text, nullable=True)
    recipient = Column(Text, nullable=True)

    # 평문 필드
    category = Column(String, nullable=True, index=True)  # saude, financas, familia, documentos ...
    is_important = Column(Boolean, default=False)
    is_shared = Column(Boolean, default=False)  # 보호자에게 공개 여부

    # 타임스탬프
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<BoxItem {self.id} ({self.type})>"
