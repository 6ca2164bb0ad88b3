# app/api/routes/user_settings.py
from fastapi import APIRouter, Depends

from app.api.deps import get_current_user, get_store
from app.models.user import User
from app.schemas.user_settings import SettingsResponse, SettingsUpdate
from app.services.store import Store

router = APIRouter(prefix="/api/settings", tags=["설정"])

@router.get("", response_model=SettingsResponse)
def get_settings(
    current_user: User = Depends(get_current_user),
    store: Store = Depends(get_store)
):
    """내 설정 (없으면 기본값)"""
    return store.get_settings(current_user.id)

@router.put("", response_model=SettingsResponse)
def update_settings(
    data: SettingsUpdate,
    current_user: User = Depends(get_current_user),
    store: Store = Depends(get_store)
):
    """설정 변경 (보낸 필드만)"""
    return store.update_settings(current_user.id, **data.model_dump(exclude_none=True))
