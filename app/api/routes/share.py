# app/api/routes/share.py
from fastapi import APIRouter, Depends, Request, status

from app.api.deps import get_current_user, get_guardian_access_service, get_share_service
from app.core.i18n import get_locale, tr
from app.core.rate_limit import pin_rate_limit
from app.core.security import get_base_url, get_client_ip
from app.models.share import ShareLink, as_utc
from app.models.user import User
from app.schemas.share import (
    GuardianAccessGuardian,
    GuardianAccessOwner,
    GuardianAccessResponse,
    PinVerifyRequest,
    ShareLinkCreate,
    ShareLinkListResponse,
    ShareLinkResponse,
    SharedViewResponse,
)
from app.schemas.user import MessageResponse
from app.services.share_service import (
    GuardianAccessService,
    GuardianPinRequired,
    GuardianView,
    PinRequired,
    SharedView,
    ShareLinkService,
    build_share_url,
)

router = APIRouter(prefix="/api/share", tags=["공유"])
public_router = APIRouter(prefix="/api/shared", tags=["공유 (공개)"])
guardian_access_router = APIRouter(prefix="/api/guardian-access", tags=["보호자 접근 (공개)"])

def to_link_response(link: ShareLink, base_url: str, access_count: int = 0) -> ShareLinkResponse:
    return ShareLinkResponse(
        id=link.id,
        name=link.name,
        type=link.type,
        token=link.token,
        url=build_share_url(base_url, link.token),
        categories=link.categories or [],
        guardian_ids=link.guardian_ids or [],
        has_pin=link.requires_pin,
        expires_at=as_utc(link.expires_at),
        max_uses=link.max_uses,
        usage_count=link.usage_count,
        access_count=access_count,
        last_used_at=as_utc(link.last_used_at),
        is_active=link.is_active,
        created_at=as_utc(link.created_at),
    )

def to_view_response(result: PinRequired | SharedView) -> SharedViewResponse:
    if isinstance(result, PinRequired):
        return SharedViewResponse(type=result.link_type, requires_pin=True)

    return SharedViewResponse(
        type=result.link_type,
        owner_name=result.owner_name,
        owner_email=result.owner_email,
        message=result.message,
        guardian_name=result.guardian_name,
        items=result.items,
        guardians=result.guardians,
    )

def to_guardian_access_response(result: GuardianPinRequired | GuardianView) -> GuardianAccessResponse:
    guardian = GuardianAccessGuardian(name=result.guardian_name, relationship=result.relationship)
    if isinstance(result, GuardianPinRequired):
        return GuardianAccessResponse(
            requires_pin=True,
            guardian=guardian,
            owner=GuardianAccessOwner(name=result.owner_name),
        )

    return GuardianAccessResponse(
        guardian=guardian,
        owner=GuardianAccessOwner(name=result.owner_name, email=result.owner_email),
        access_type=result.access_type,
        items=result.items,
        accessed_at=result.accessed_at,
    )

# ===== 소유자 =====

@router.post("/links", response_model=ShareLinkResponse, status_code=status.HTTP_201_CREATED)
def create_share_link(
    data: ShareLinkCreate,
    request: Request,
    current_user: User = Depends(get_current_user),
    service: ShareLinkService = Depends(get_share_service)
):
    """공유 링크 생성"""
    link = service.create_link(
        owner_id=current_user.id,
        name=data.name,
        type=data.type,
        categories=data.categories,
        pin=data.pin or None,
        expires_in_days=data.expires_in_days,
        max_uses=data.max_uses,
        guardian_ids=data.guardian_ids,
        guardian_id=data.guardian_id,
    )
    return to_link_response(link, get_base_url(request))

@router.get("/links", response_model=ShareLinkListResponse)
def list_share_links(
    request: Request,
    current_user: User = Depends(get_current_user),
    service: ShareLinkService = Depends(get_share_service)
):
    """내 공유 링크 목록 (접근 기록 수 포함)"""
    base_url = get_base_url(request)
    links = service.list_links(current_user.id)
    return ShareLinkListResponse(links=[
        to_link_response(link, base_url, service.store.count_share_link_accesses(link.id))
        for link in links
    ])

@router.delete("/links/{link_id}", response_model=MessageResponse)
def delete_share_link(
    link_id: str,
    request: Request,
    current_user: User = Depends(get_current_user),
    service: ShareLinkService = Depends(get_share_service)
):
    """공유 링크 삭제"""
    service.delete_link(current_user.id, link_id)
    return MessageResponse(message=tr(get_locale(request), "share.deleted"))

# ===== 공개 (인증 불필요) =====

@public_router.get("/{token}", response_model=SharedViewResponse)
def get_shared_content(
    token: str,
    request: Request,
    service: ShareLinkService = Depends(get_share_service)
):
    """공유 링크 조회 (PIN이 있으면 requires_pin만 반환)"""
    result = service.resolve_link(
        token,
        ip=get_client_ip(request),
        user_agent=request.headers.get("user-agent")
    )
    return to_view_response(result)

@public_router.post("/{token}/verify", response_model=SharedViewResponse, dependencies=[Depends(pin_rate_limit)])
def verify_shared_pin(
    token: str,
    data: PinVerifyRequest,
    request: Request,
    service: ShareLinkService = Depends(get_share_service)
):
    """PIN 확인 후 공유 내용 조회"""
    view = service.verify_pin(
        token,
        data.pin,
        ip=get_client_ip(request),
        user_agent=request.headers.get("user-agent")
    )
    return to_view_response(view)

# ===== 보호자 전용 링크 (인증 불필요) =====

@guardian_access_router.get("/{token}", response_model=GuardianAccessResponse)
def get_guardian_access(
    token: str,
    request: Request,
    service: GuardianAccessService = Depends(get_guardian_access_service)
):
    """보호자 토큰으로 공개 아이템 조회 (PIN이 있으면 이름만)"""
    return to_guardian_access_response(service.resolve(token, ip=get_client_ip(request)))

@guardian_access_router.post("/{token}/verify", response_model=GuardianAccessResponse, dependencies=[Depends(pin_rate_limit)])
def verify_guardian_pin(
    token: str,
    data: PinVerifyRequest,
    request: Request,
    service: GuardianAccessService = Depends(get_guardian_access_service)
):
    """보호자 PIN 확인 후 공개 아이템 조회"""
    return to_guardian_access_response(service.verify_pin(token, data.pin, ip=get_client_ip(request)))
