# app/schemas/analytics.py
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Any

class TrackRequest(BaseModel):
    """분석 이벤트 (상세는 서버에서 정리)"""
    event_type: str = Field(..., max_length=50)
    page: str | None = Field(None, max_length=500)
    details: dict[str, Any] | None = None

class TrackResponse(BaseModel):
    status: str  # tracked, ignored

class AnalyticsEventResponse(BaseModel):
    id: str
    user_id: str | None
    event_type: str
    page: str | None
    details: dict | None
    created_at: datetime

    class Config:
        from_attributes = True

class AnalyticsSummaryResponse(BaseModel):
    total_users: int
    new_users_today: int
    new_users_this_week: int
    active_today: int
    active_this_week: int
    total_items: int
    items_created_today: int
    total_guardians: int
    total_share_links: int
    events_today: int
    events_by_type: dict[str, int]

class DailyStat(BaseModel):
    date: str
    events: int
    users: int
