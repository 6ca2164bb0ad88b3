# app/api/routes/oauth.py
from datetime import timedelta

from fastapi import APIRouter, Depends, Request, Response

from app.api.deps import get_apple_verifier, get_google_verifier, get_session_issuer, get_store
from app.api.routes.auth import to_user_response
from app.config import settings
from app.core.errors import ServiceUnavailable, Unauthorized
from app.core.logger import audit, logger
from app.core.rate_limit import login_rate_limit
from app.core.security import get_client_ip, sanitize_name
from app.core.session import SessionIssuer
from app.schemas.user import AuthResponse, OAuthStatusResponse, OAuthTokenRequest
from app.services import analytics_service
from app.services.oauth_service import IdentityVerifier, OAuthVerificationError, VerifiedIdentity
from app.services.store import Store

router = APIRouter(prefix="/api/auth/oauth", tags=["소셜 로그인"])

def start_social_session(
    identity: VerifiedIdentity,
    request: Request,
    response: Response,
    store: Store,
    issuer: SessionIssuer
) -> AuthResponse:
    """검증된 ID로 유저 upsert 후 세션 발급"""
    user = store.create_or_update_social_user(
        provider=identity.provider,
        provider_id=identity.subject,
        email=identity.email,
        name=sanitize_name(identity.name),
        avatar_url=identity.avatar_url,
    )

    session = issuer.issue(user.id, user.email, ttl=timedelta(hours=settings.oauth_session_ttl_hours))
    issuer.set_cookie(response, request, session)

    audit("auth.oauth_login", "소셜 로그인", user_id=user.id, provider=identity.provider, ip=get_client_ip(request))
    analytics_service.track(store, "login", user_id=user.id, details={"provider": identity.provider})

    return AuthResponse(user=to_user_response(user), expires_at=session.expires_at)

@router.post("/google", response_model=AuthResponse, dependencies=[Depends(login_rate_limit)])
async def google_login(
    data: OAuthTokenRequest,
    request: Request,
    response: Response,
    verifier: IdentityVerifier = Depends(get_google_verifier),
    store: Store = Depends(get_store),
    issuer: SessionIssuer = Depends(get_session_issuer)
):
    """Google ID 토큰으로 로그인"""
    if not verifier.configured:
        raise ServiceUnavailable("oauth.google_not_configured")

    try:
        identity = await verifier.verify(data.id_token)
    except OAuthVerificationError as e:
        logger.warning(f"Google 토큰 검증 실패: {e}")
        raise Unauthorized("oauth.invalid_token")

    return start_social_session(identity, request, response, store, issuer)

@router.post("/apple", response_model=AuthResponse, dependencies=[Depends(login_rate_limit)])
async def apple_login(
    data: OAuthTokenRequest,
    request: Request,
    response: Response,
    verifier: IdentityVerifier = Depends(get_apple_verifier),
    store: Store = Depends(get_store),
    issuer: SessionIssuer = Depends(get_session_issuer)
):
    """Apple ID 토큰으로 로그인"""
    if not verifier.configured:
        raise ServiceUnavailable("oauth.apple_not_configured")

    try:
        identity = await verifier.verify(data.id_token, name=data.name or "")
    except OAuthVerificationError as e:
        logger.warning(f"Apple 토큰 검증 실패: {e}")
        raise Unauthorized("oauth.invalid_token")

    return start_social_session(identity, request, response, store, issuer)

@router.get("/status", response_model=OAuthStatusResponse)
def oauth_status(
    google: IdentityVerifier = Depends(get_google_verifier),
    apple: IdentityVerifier = Depends(get_apple_verifier)
):
    """설정된 소셜 로그인 제공자"""
    return OAuthStatusResponse(google=google.configured, apple=apple.configured)
