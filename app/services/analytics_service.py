# app/services/analytics_service.py
"""분석 이벤트 수집 (실패해도 요청에는 영향 없음)"""
import json

from app.core.logger import logger
from app.core.security import sanitize_text
from app.services.store import Store

VALID_EVENT_TYPES = {
    "page_view",
    "login",
    "register",
    "create_item",
    "edit_item",
    "delete_item",
    "create_guardian",
    "complete_guide",
    "export_data",
    "send_feedback",
}

MAX_DETAIL_ENTRIES = 20
MAX_DETAIL_KEY_LENGTH = 64
MAX_DETAIL_VALUE_LENGTH = 255
MAX_DETAILS_BYTES = 2048
MAX_PAGE_LENGTH = 200


def sanitize_details(details: dict | None) -> dict[str, str]:
    """
    이벤트 상세 정리
    - 최대 20개 항목, 키 64자, 값 255자
    - 제어 문자 제거, 값은 문자열로 변환
    - 직렬화 크기가 2KB를 넘으면 그 전까지만 유지
    """
    if not details or not isinstance(details, dict):
        return {}

    cleaned: dict[str, str] = {}
    for key, value in details.items():
        if len(cleaned) >= MAX_DETAIL_ENTRIES:
            break

        key = sanitize_text(str(key), MAX_DETAIL_KEY_LENGTH)
        if not key or value is None:
            continue
        if isinstance(value, (dict, list)):
            continue

        candidate = dict(cleaned)
        candidate[key] = sanitize_text(str(value), MAX_DETAIL_VALUE_LENGTH)
        if len(json.dumps(candidate, ensure_ascii=False).encode("utf-8")) > MAX_DETAILS_BYTES:
            break
        cleaned = candidate

    return cleaned


def track(
    store: Store,
    event_type: str,
    user_id: str | None = None,
    page: str | None = None,
    details: dict | None = None,
) -> bool:
    """이벤트 기록. 알 수 없는 타입이거나 저장 실패면 False"""
    if event_type not in VALID_EVENT_TYPES:
        return False

    try:
        store.track_event(
            event_type=event_type,
            user_id=user_id,
            page=sanitize_text(page, MAX_PAGE_LENGTH) or None,
            details=sanitize_details(details),
        )
    except Exception as e:
        # 텔레메트리는 본 요청을 막지 않음
        store.db.rollback()
        logger.warning(f"분석 이벤트 저장 실패 ({event_type}): {type(e).__name__}")
        return False

    return True
