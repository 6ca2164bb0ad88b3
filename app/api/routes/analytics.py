# app/api/routes/analytics.py
from fastapi import APIRouter, Depends, Query

from app.api.deps import get_optional_user_id, get_store, require_admin
from app.models.user import User
from app.schemas.analytics import (
    AnalyticsEventResponse,
    AnalyticsSummaryResponse,
    DailyStat,
    TrackRequest,
    TrackResponse,
)
from app.services import analytics_service
from app.services.store import Store

router = APIRouter(prefix="/api/analytics", tags=["분석"])
admin_router = APIRouter(prefix="/api/admin/analytics", tags=["관리자"])

@router.post("/track", response_model=TrackResponse)
def track_event(
    data: TrackRequest,
    user_id: str | None = Depends(get_optional_user_id),
    store: Store = Depends(get_store)
):
    """이벤트 기록 (로그인 선택, 실패해도 성공 응답)"""
    if data.event_type not in analytics_service.VALID_EVENT_TYPES:
        return TrackResponse(status="ignored")

    analytics_service.track(store, data.event_type, user_id=user_id, page=data.page, details=data.details)
    return TrackResponse(status="tracked")

@admin_router.get("/summary", response_model=AnalyticsSummaryResponse)
def analytics_summary(
    admin: User = Depends(require_admin),
    store: Store = Depends(get_store)
):
    """전체 요약"""
    return store.get_analytics_summary()

@admin_router.get("/events", response_model=list[AnalyticsEventResponse])
def recent_events(
    limit: int = Query(50, ge=1, le=200),
    admin: User = Depends(require_admin),
    store: Store = Depends(get_store)
):
    """최근 이벤트"""
    return store.get_recent_events(limit)

@admin_router.get("/daily", response_model=list[DailyStat])
def daily_stats(
    days: int = Query(7, ge=1, le=30),
    admin: User = Depends(require_admin),
    store: Store = Depends(get_store)
):
    """일별 통계"""
    return store.get_daily_stats(days)
