# app/api/routes/auth.py
from fastapi import APIRouter, Depends, Request, Response, status

from app.api.deps import get_current_user, get_optional_user_id, get_session_issuer, get_store
from app.core.errors import BadRequest, Conflict, InternalError, Unauthorized
from app.core.i18n import get_locale, tr
from app.core.logger import audit, logger, mask_email
from app.core.rate_limit import login_rate_limit, register_rate_limit
from app.core.security import (
    get_client_ip,
    hash_password,
    is_admin_email,
    sanitize_name,
    validate_password_strength,
    verify_password,
)
from app.core.session import SessionIssuer
from app.models.user import User
from app.schemas.guardian import GuardianResponse
from app.schemas.user import (
    AccountDeleteRequest,
    AuthResponse,
    DataExportResponse,
    ExportedShareLink,
    MessageResponse,
    UserCreate,
    UserLogin,
    UserResponse,
)
from app.services import analytics_service
from app.services.store import Store

router = APIRouter(prefix="/api/auth", tags=["인증"])

DELETE_CONFIRMATIONS = {"EXCLUIR MINHA CONTA", "DELETE MY ACCOUNT"}

def to_user_response(user: User) -> UserResponse:
    return UserResponse.model_validate(user).model_copy(update={"is_admin": is_admin_email(user.email)})

@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(register_rate_limit)]
)
def register(
    data: UserCreate,
    request: Request,
    response: Response,
    store: Store = Depends(get_store),
    issuer: SessionIssuer = Depends(get_session_issuer)
):
    """회원가입"""
    if not validate_password_strength(data.password):
        raise BadRequest("auth.password_weak")

    name = sanitize_name(data.name)
    if not name:
        raise BadRequest("auth.invalid_data")

    # 이메일 중복 체크
    if store.get_user_by_email(data.email):
        raise Conflict("auth.email_exists")

    user = store.create_user(
        email=data.email,
        name=name,
        hashed_password=hash_password(data.password),
        locale=get_locale(request),
    )

    session = issuer.issue(user.id, user.email)
    issuer.set_cookie(response, request, session)

    audit("auth.register", "회원가입", user_id=user.id, email=mask_email(user.email), ip=get_client_ip(request))
    analytics_service.track(store, "register", user_id=user.id)

    return AuthResponse(user=to_user_response(user), expires_at=session.expires_at)

@router.post("/login", response_model=AuthResponse, dependencies=[Depends(login_rate_limit)])
def login(
    data: UserLogin,
    request: Request,
    response: Response,
    store: Store = Depends(get_store),
    issuer: SessionIssuer = Depends(get_session_issuer)
):
    """로그인 (계정 존재 여부와 관계없이 같은 오류)"""
    user = store.get_user_by_email(data.email) if data.email.strip() else None

    # 유저가 없어도 해시 검증 시간은 동일하게 소모
    if not verify_password(data.password, user.hashed_password if user else None):
        audit("auth.login_failed", "로그인 실패", email=mask_email(data.email), ip=get_client_ip(request))
        raise Unauthorized("auth.invalid_credentials")

    session = issuer.issue(user.id, user.email)
    issuer.set_cookie(response, request, session)

    audit("auth.login", "로그인", user_id=user.id, ip=get_client_ip(request))
    analytics_service.track(store, "login", user_id=user.id)

    return AuthResponse(user=to_user_response(user), expires_at=session.expires_at)

@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    response: Response,
    user_id: str | None = Depends(get_optional_user_id),
    issuer: SessionIssuer = Depends(get_session_issuer)
):
    """로그아웃 (쿠키 삭제)"""
    issuer.clear_cookie(response, request)
    if user_id:
        audit("auth.logout", "로그아웃", user_id=user_id)
    else:
        logger.debug("세션 없이 로그아웃 요청")
    return MessageResponse(message=tr(get_locale(request), "auth.logout_success"))

@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    """현재 로그인한 유저"""
    return to_user_response(current_user)

@router.get("/export", response_model=DataExportResponse)
def export_data(
    request: Request,
    response: Response,
    current_user: User = Depends(get_current_user),
    store: Store = Depends(get_store)
):
    """내 데이터 내보내기 (JSON 다운로드)"""
    data = store.export_user_data(current_user.id)

    response.headers["Content-Disposition"] = 'attachment; filename="famli-meus-dados.json"'
    audit("auth.export", "데이터 내보내기", user_id=current_user.id, ip=get_client_ip(request))
    analytics_service.track(store, "export_data", user_id=current_user.id)

    return DataExportResponse(
        user=to_user_response(current_user),
        items=data["items"],
        guardians=[GuardianResponse.model_validate(g) for g in data["guardians"]],
        share_links=[ExportedShareLink.model_validate(link) for link in data["share_links"]],
        settings=data["settings"],
        exported_at=data["exported_at"],
    )

@router.delete("/account", response_model=MessageResponse, dependencies=[Depends(login_rate_limit)])
def delete_account(
    data: AccountDeleteRequest,
    request: Request,
    response: Response,
    current_user: User = Depends(get_current_user),
    store: Store = Depends(get_store),
    issuer: SessionIssuer = Depends(get_session_issuer)
):
    """계정과 모든 데이터 삭제 (확인 문구 + 비밀번호)"""
    if data.confirmation.strip().upper() not in DELETE_CONFIRMATIONS:
        raise BadRequest("auth.delete_confirm")

    user_id = current_user.id
    client_ip = get_client_ip(request)

    # 소셜 로그인 전용 계정은 비밀번호가 없음
    if current_user.hashed_password and not verify_password(data.password, current_user.hashed_password):
        audit("auth.delete_failed", "계정 삭제 실패 (비밀번호)", user_id=user_id, ip=client_ip)
        raise Unauthorized("auth.password_incorrect")

    # 삭제 전에 먼저 기록
    audit("auth.delete", "계정 삭제 시작", user_id=user_id, email=mask_email(current_user.email), ip=client_ip)
    if not store.delete_user(user_id):
        raise InternalError()

    issuer.clear_cookie(response, request)
    audit("auth.delete", "계정 삭제 완료", user_id=user_id)
    return MessageResponse(message=tr(get_locale(request), "auth.delete_success"))
