# app/models/analytics.py
from sqlalchemy import Column, String, DateTime, JSON
from app.database import Base
import uuid
from datetime import datetime, timezone

class AnalyticsEvent(Base):
    """분석 이벤트"""
    __tablename__ = "analytics_events"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, nullable=True, index=True)  # 비로그인 이벤트 허용
    event_type = Column(String, nullable=False, index=True)
    page = Column(String, nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True, default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f"<AnalyticsEvent {self.event_type}>"
