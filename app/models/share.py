# app/models/share.py
from sqlalchemy import Column, String, DateTime, ForeignKey, Boolean, Integer, JSON
from sqlalchemy.sql import func
from app.database import Base
import uuid
import enum
from datetime import datetime, timezone

class ShareLinkType(str, enum.Enum):
    """공유 링크 종류"""
    NORMAL = "normal"        # 선택한 카테고리만
    EMERGENCY = "emergency"  # 긴급 상황
    MEMORIAL = "memorial"    # 사후 추모 (보호자 목록 + 이메일 포함)

def as_utc(value: datetime | None) -> datetime | None:
    """SQLite는 tz 정보를 버리므로 UTC로 간주"""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)

class ShareLink(Base):
    """공유 링크 모델"""
    __tablename__ = "share_links"

    # 기본 필드
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    guardian_id = Column(String, nullable=True)
    guardian_ids = Column(JSON, nullable=False, default=list)  # 특정 보호자만 표시

    # 공개 조회 키 (32자 hex)
    token = Column(String(64), unique=True, index=True, nullable=False)

    # 설정
    type = Column(String, nullable=False, default=ShareLinkType.NORMAL.value)
    name = Column(String(100), nullable=False)
    categories = Column(JSON, nullable=False, default=list)  # 비어 있으면 전체
    pin_hash = Column(String, nullable=True)

    # 만료 / 사용 제한
    expires_at = Column(DateTime(timezone=True), nullable=True)  # None이면 만료 없음
    max_uses = Column(Integer, nullable=False, default=0)        # 0이면 무제한
    usage_count = Column(Integer, nullable=False, default=0)
    last_used_at = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    # 타임스탬프
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def is_expired(self, now: datetime | None = None) -> bool:
        """만료 여부 확인"""
        if not self.expires_at:
            return False
        now = now or datetime.now(timezone.utc)
        return now >= as_utc(self.expires_at)

    def is_exhausted(self) -> bool:
        """사용 횟수 소진 여부"""
        return (self.max_uses or 0) > 0 and (self.usage_count or 0) >= self.max_uses

    def is_usable(self, now: datetime | None = None) -> bool:
        return bool(self.is_active) and not self.is_expired(now) and not self.is_exhausted()

    @property
    def requires_pin(self) -> bool:
        return bool(self.pin_hash)

    def __repr__(self):
        return f"<ShareLink {self.id} ({self.type})>"

class ShareLinkAccess(Base):
    """공유 링크 접근 기록 (추가만 가능)"""
    __tablename__ = "share_link_accesses"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    share_link_id = Column(String, ForeignKey("share_links.id", ondelete="CASCADE"), nullable=False, index=True)
    ip_address = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)
    accessed_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<ShareLinkAccess {self.share_link_id}>"
