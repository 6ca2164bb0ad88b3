# app/api/deps.py
from datetime import timedelta

from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session

from app.config import settings
from app.core.crypto import FieldCipher
from app.core.errors import Forbidden, InternalError, Unauthorized
from app.core.i18n import get_locale
from app.core.security import is_admin_email
from app.core.session import SessionIssuer
from app.database import get_db
from app.models.user import User
from app.services.oauth_service import AppleTokenVerifier, GoogleTokenVerifier, IdentityVerifier
from app.services.share_service import GuardianAccessService, ShareLinkService
from app.services.store import Store

# 세션 발급기 (비밀키는 설정에서 주입)
session_issuer = SessionIssuer(
    settings.secret_key,
    algorithm=settings.algorithm,
    cookie_name=settings.session_cookie_name,
    default_ttl=timedelta(hours=settings.session_ttl_hours),
    trust_forwarded_proto=settings.trust_forwarded_proto,
)

def get_session_issuer() -> SessionIssuer:
    return session_issuer

def get_cipher(request: Request) -> FieldCipher:
    """시작 시 만든 필드 암호화기"""
    cipher = getattr(request.app.state, "cipher", None)
    if cipher is None:
        raise InternalError()
    return cipher

def get_store(
    db: Session = Depends(get_db),
    cipher: FieldCipher = Depends(get_cipher)
) -> Store:
    return Store(db, cipher)

def get_share_service(
    request: Request,
    store: Store = Depends(get_store)
) -> ShareLinkService:
    return ShareLinkService(store, locale=get_locale(request))

def get_guardian_access_service(store: Store = Depends(get_store)) -> GuardianAccessService:
    return GuardianAccessService(store)

def get_current_user(
    request: Request,
    response: Response,
    store: Store = Depends(get_store),
    issuer: SessionIssuer = Depends(get_session_issuer)
) -> User:
    """세션 쿠키로 현재 유저 가져오기 (만료가 가까우면 쿠키 갱신)"""
    claims = issuer.validate(request.cookies.get(issuer.cookie_name))

    user = store.get_user_by_id(claims.user_id)
    if user is None:
        raise Unauthorized("auth.session_invalid")

    if claims.remaining() < timedelta(hours=settings.session_renew_threshold_hours):
        session = issuer.issue(user.id, user.email)
        issuer.set_cookie(response, request, session)

    return user

def get_optional_user_id(
    request: Request,
    issuer: SessionIssuer = Depends(get_session_issuer)
) -> str | None:
    """로그인하지 않았어도 되는 엔드포인트용"""
    token = request.cookies.get(issuer.cookie_name)
    if not token:
        return None
    try:
        return issuer.validate(token).user_id
    except Unauthorized:
        return None

def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not is_admin_email(current_user.email):
        raise Forbidden("common.forbidden")
    return current_user

def get_google_verifier() -> IdentityVerifier:
    return GoogleTokenVerifier(settings.google_client_id, timeout=settings.oauth_timeout_seconds)

def get_apple_verifier() -> IdentityVerifier:
    return AppleTokenVerifier(settings.apple_client_id, timeout=settings.oauth_timeout_seconds)
