# app/core/session.py
"""
JWT 세션 발급/검증

세션은 DB에 저장하지 않고 서명된 토큰(HS256) 자체가 세션이다.
서명 비밀키는 생성자로 주입 (테스트/키 교체 시 여러 인스턴스 공존 가능).
"""
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from fastapi import Request, Response
from jose import ExpiredSignatureError, JWTError, jwt

from app.core.errors import Unauthorized
from app.core.security import is_secure_request


@dataclass(frozen=True)
class IssuedSession:
    token: str
    expires_at: datetime
    max_age: int


@dataclass(frozen=True)
class SessionClaims:
    user_id: str
    email: str | None
    expires_at: datetime
    jti: str | None

    def remaining(self, now: datetime | None = None) -> timedelta:
        return self.expires_at - (now or datetime.now(timezone.utc))


class SessionIssuer:
    def __init__(
        self,
        secret: str,
        *,
        algorithm: str = "HS256",
        cookie_name: str = "famli_session",
        default_ttl: timedelta = timedelta(hours=24),
        trust_forwarded_proto: bool = True,
    ):
        if not secret:
            raise ValueError("session secret is required")
        self._secret = secret
        self.algorithm = algorithm
        self.cookie_name = cookie_name
        self.default_ttl = default_ttl
        self.trust_forwarded_proto = trust_forwarded_proto

    def issue(self, user_id: str, email: str | None = None, ttl: timedelta | None = None) -> IssuedSession:
        """세션 토큰 생성"""
        ttl = ttl or self.default_ttl
        now = datetime.now(timezone.utc)
        expires_at = now + ttl
        claims = {
            "sub": user_id,
            "iat": int(now.timestamp()),
            "nbf": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
            "jti": secrets.token_urlsafe(16),
        }
        if email:
            claims["email"] = email

        token = jwt.encode(claims, self._secret, algorithm=self.algorithm)
        return IssuedSession(token=token, expires_at=expires_at, max_age=int(ttl.total_seconds()))

    def validate(self, token: str | None) -> SessionClaims:
        """서명 + 만료 검증. 실패 시 Unauthorized"""
        if not token:
            raise Unauthorized("auth.session_missing")

        try:
            payload = jwt.decode(token, self._secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise Unauthorized("auth.session_expired")
        except JWTError:
            raise Unauthorized("auth.session_invalid")

        user_id = str(payload.get("sub") or "").strip()
        exp = payload.get("exp")
        if not user_id or not isinstance(exp, (int, float)):
            raise Unauthorized("auth.session_invalid")

        return SessionClaims(
            user_id=user_id,
            email=payload.get("email"),
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
            jti=payload.get("jti"),
        )

    def set_cookie(self, response: Response, request: Request, session: IssuedSession) -> None:
        """세션 쿠키 설정 (HttpOnly, SameSite=Lax)"""
        response.set_cookie(
            key=self.cookie_name,
            value=session.token,
            max_age=session.max_age,
            expires=session.expires_at,
            path="/",
            secure=is_secure_request(request, self.trust_forwarded_proto),
            httponly=True,
            samesite="lax",
        )

    def clear_cookie(self, response: Response, request: Request) -> None:
        """세션 쿠키 삭제 (빈 값 + epoch 만료)"""
        response.set_cookie(
            key=self.cookie_name,
            value="",
            max_age=0,
            expires=datetime(1970, 1, 1, tzinfo=timezone.utc),
            path="/",
            secure=is_secure_request(request, self.trust_forwarded_proto),
            httponly=True,
            samesite="lax",
        )
