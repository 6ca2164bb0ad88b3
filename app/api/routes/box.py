# app/api/routes/box.py
from fastapi import APIRouter, Depends, Request, status

from app.api.deps import get_current_user, get_store
from app.core.errors import BadRequest, NotFound
from app.core.i18n import get_locale, tr
from app.core.security import sanitize_text
from app.models.user import User
from app.schemas.box import ITEM_TYPES, BoxItemCreate, BoxItemListResponse, BoxItemResponse, BoxItemUpdate
from app.schemas.user import MessageResponse
from app.services import analytics_service
from app.services.store import Store

router = APIRouter(prefix="/api/box", tags=["박스"])

MAX_TITLE_LENGTH = 200
MAX_CONTENT_LENGTH = 10000

def clean_title(value: str | None) -> str:
    title = sanitize_text(value, MAX_TITLE_LENGTH + 1)
    if not title:
        raise BadRequest("box.title_required")
    if len(title) > MAX_TITLE_LENGTH:
        raise BadRequest("box.title_too_long")
    return title

def clean_content(value: str | None) -> str | None:
    if value is None:
        return None
    content = sanitize_text(value, MAX_CONTENT_LENGTH + 1)
    if len(content) > MAX_CONTENT_LENGTH:
        raise BadRequest("box.content_too_long")
    return content

def clean_type(value: str | None) -> str | None:
    if value is None:
        return None
    return value if value in ITEM_TYPES else "info"

@router.get("/items", response_model=BoxItemListResponse)
def list_items(
    current_user: User = Depends(get_current_user),
    store: Store = Depends(get_store)
):
    """박스 아이템 목록"""
    return BoxItemListResponse(items=store.get_box_items(current_user.id))

@router.post("/items", response_model=BoxItemResponse, status_code=status.HTTP_201_CREATED)
def create_item(
    data: BoxItemCreate,
    current_user: User = Depends(get_current_user),
    store: Store = Depends(get_store)
):
    """박스 아이템 저장 (민감 필드 암호화)"""
    item = store.create_box_item(
        user_id=current_user.id,
        type=clean_type(data.type),
        title=clean_title(data.title),
        content=clean_content(data.content),
        category=sanitize_text(data.category, 50) or None,
        recipient=sanitize_text(data.recipient, 200) or None,
        is_important=data.is_important,
        is_shared=data.is_shared,
    )
    analytics_service.track(store, "create_item", user_id=current_user.id, details={"type": item["type"]})
    return item

@router.get("/items/{item_id}", response_model=BoxItemResponse)
def get_item(
    item_id: str,
    current_user: User = Depends(get_current_user),
    store: Store = Depends(get_store)
):
    """박스 아이템 조회"""
    item = store.get_box_item(current_user.id, item_id)
    if not item:
        raise NotFound("box.not_found")
    return item

@router.put("/items/{item_id}", response_model=BoxItemResponse)
def update_item(
    item_id: str,
    data: BoxItemUpdate,
    current_user: User = Depends(get_current_user),
    store: Store = Depends(get_store)
):
    """박스 아이템 수정 (보낸 필드만)"""
    changes = data.model_dump(exclude_unset=True)
    if "title" in changes:
        changes["title"] = clean_title(changes["title"])
    if "content" in changes:
        changes["content"] = clean_content(changes["content"])
    if "type" in changes:
        changes["type"] = clean_type(changes["type"])
    for key, limit in (("category", 50), ("recipient", 200)):
        if changes.get(key) is not None:
            changes[key] = sanitize_text(changes[key], limit)

    item = store.update_box_item(current_user.id, item_id, **changes)
    if not item:
        raise NotFound("box.not_found")

    analytics_service.track(store, "edit_item", user_id=current_user.id)
    return item

@router.delete("/items/{item_id}", response_model=MessageResponse)
def delete_item(
    item_id: str,
    request: Request,
    current_user: User = Depends(get_current_user),
    store: Store = Depends(get_store)
):
    """박스 아이템 삭제"""
    if not store.delete_box_item(current_user.id, item_id):
        raise NotFound("box.not_found")

    analytics_service.track(store, "delete_item", user_id=current_user.id)
    return MessageResponse(message=tr(get_locale(request), "box.deleted"))
