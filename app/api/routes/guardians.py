# app/api/routes/guardians.py
from fastapi import APIRouter, Depends, Request, status

from app.api.deps import get_current_user, get_store
from app.core.errors import BadRequest, NotFound
from app.core.i18n import get_locale, tr
from app.core.security import hash_password, sanitize_name, sanitize_text
from app.models.share import ShareLinkType
from app.models.user import User
from app.schemas.guardian import GuardianCreate, GuardianListResponse, GuardianResponse, GuardianUpdate
from app.schemas.user import MessageResponse
from app.services import analytics_service
from app.services.store import Store

router = APIRouter(prefix="/api/guardians", tags=["보호자"])

MAX_NOTES_LENGTH = 1000
MIN_PIN_LENGTH = 4
ACCESS_TYPES = {t.value for t in ShareLinkType}

def clean_fields(data: GuardianCreate) -> dict:
    """공백/제어 문자 정리 (보내지 않은 필드는 None)"""
    notes = data.notes
    if notes is not None:
        notes = sanitize_text(notes, MAX_NOTES_LENGTH + 1)
        if len(notes) > MAX_NOTES_LENGTH:
            raise BadRequest("guardian.notes_too_long")

    access_type = data.access_type
    if access_type is not None and access_type not in ACCESS_TYPES:
        access_type = ShareLinkType.NORMAL.value

    return {
        "name": sanitize_name(data.name) if data.name is not None else None,
        "email": sanitize_text(data.email, 254).lower() if data.email is not None else None,
        "phone": sanitize_text(data.phone, 30) if data.phone is not None else None,
        "relationship": sanitize_text(data.relationship, 50) if data.relationship is not None else None,
        "role": sanitize_text(data.role, 30) if data.role is not None else None,
        "notes": notes,
        "access_type": access_type,
    }

def hash_pin(pin: str | None) -> str | None:
    if not pin:
        return None
    if len(pin) < MIN_PIN_LENGTH:
        raise BadRequest("guardian.pin_too_short")
    return hash_password(pin)

@router.get("", response_model=GuardianListResponse)
def list_guardians(
    current_user: User = Depends(get_current_user),
    store: Store = Depends(get_store)
):
    """보호자 목록"""
    guardians = store.list_guardians(current_user.id)
    return GuardianListResponse(guardians=[GuardianResponse.model_validate(g) for g in guardians])

@router.post("", response_model=GuardianResponse, status_code=status.HTTP_201_CREATED)
def add_guardian(
    data: GuardianCreate,
    current_user: User = Depends(get_current_user),
    store: Store = Depends(get_store)
):
    """보호자 추가"""
    fields = clean_fields(data)
    if not fields["name"]:
        raise BadRequest("guardian.name_required")

    guardian = store.add_guardian(current_user.id, pin_hash=hash_pin(data.pin), **fields)
    analytics_service.track(store, "create_guardian", user_id=current_user.id)
    return guardian

@router.put("/{guardian_id}", response_model=GuardianResponse)
def update_guardian(
    guardian_id: str,
    data: GuardianUpdate,
    current_user: User = Depends(get_current_user),
    store: Store = Depends(get_store)
):
    """보호자 수정"""
    fields = clean_fields(data)
    if data.name is not None and not fields["name"]:
        raise BadRequest("guardian.name_required")

    guardian = store.update_guardian(current_user.id, guardian_id, pin_hash=hash_pin(data.pin), **fields)
    if not guardian:
        raise NotFound("guardian.not_found")
    return guardian

@router.delete("/{guardian_id}", response_model=MessageResponse)
def delete_guardian(
    guardian_id: str,
    request: Request,
    current_user: User = Depends(get_current_user),
    store: Store = Depends(get_store)
):
    """보호자 삭제"""
    if not store.delete_guardian(current_user.id, guardian_id):
        raise NotFound("guardian.not_found")
    return MessageResponse(message=tr(get_locale(request), "guardian.deleted"))
