# app/services/oauth_service.py
"""
소셜 로그인 ID 토큰 검증

- Google: tokeninfo 엔드포인트로 검증 후 aud / email_verified 확인
- Apple: 공개키(JWKS)를 받아 kid로 선택, RS256 서명 + iss / aud / exp 로컬 검증

검증기는 IdentityVerifier 프로토콜을 따르며 라우터에는 의존성으로 주입된다.
"""
from dataclasses import dataclass
from typing import Protocol

import httpx
from authlib.jose import JsonWebKey, JsonWebToken
from authlib.jose.errors import JoseError

from app.core.logger import logger

GOOGLE_TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"
GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")

APPLE_KEYS_URL = "https://appleid.apple.com/auth/keys"
APPLE_ISSUER = "https://appleid.apple.com"


class OAuthVerificationError(Exception):
    """토큰 검증 실패 (네트워크 / 서명 / aud / 미인증 이메일)"""


@dataclass(frozen=True)
class VerifiedIdentity:
    provider: str
    subject: str
    email: str
    name: str = ""
    avatar_url: str | None = None


class IdentityVerifier(Protocol):
    provider: str

    @property
    def configured(self) -> bool: ...

    async def verify(self, id_token: str, name: str = "") -> VerifiedIdentity: ...


def _is_true(value) -> bool:
    return value is True or str(value).lower() == "true"


class GoogleTokenVerifier:
    provider = "google"

    def __init__(self, client_id: str, timeout: float = 5.0, transport: httpx.AsyncBaseTransport | None = None):
        self.client_id = client_id
        self.timeout = timeout
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.client_id)

    async def verify(self, id_token: str, name: str = "") -> VerifiedIdentity:
        """Google ID 토큰 검증 (이름은 토큰의 name 클레임 사용)"""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(GOOGLE_TOKENINFO_URL, params={"id_token": id_token})
        except httpx.HTTPError as e:
            logger.warning(f"Google tokeninfo 요청 실패: {type(e).__name__}")
            raise OAuthVerificationError("google request failed") from e

        if response.status_code != 200:
            raise OAuthVerificationError(f"google tokeninfo status {response.status_code}")

        try:
            info = response.json()
        except ValueError as e:
            raise OAuthVerificationError("google tokeninfo is not json") from e

        if info.get("aud") != self.client_id:
            raise OAuthVerificationError("audience mismatch")
        if info.get("iss") and info["iss"] not in GOOGLE_ISSUERS:
            raise OAuthVerificationError("issuer mismatch")
        if not info.get("sub") or not info.get("email"):
            raise OAuthVerificationError("missing subject or email")
        if not _is_true(info.get("email_verified")):
            raise OAuthVerificationError("email not verified")

        return VerifiedIdentity(
            provider=self.provider,
            subject=str(info["sub"]),
            email=info["email"],
            name=info.get("name") or "",
            avatar_url=info.get("picture"),
        )


class AppleTokenVerifier:
    provider = "apple"

    def __init__(self, client_id: str, timeout: float = 5.0, transport: httpx.AsyncBaseTransport | None = None):
        self.client_id = client_id
        self.timeout = timeout
        self.transport = transport
        self._jwt = JsonWebToken(["RS256"])

    @property
    def configured(self) -> bool:
        return bool(self.client_id)

    async def fetch_keys(self) -> dict:
        """Apple 공개키(JWKS) 조회"""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(APPLE_KEYS_URL)
                response.raise_for_status()
                return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Apple 공개키 조회 실패: {type(e).__name__}")
            raise OAuthVerificationError("apple keys unavailable") from e

    async def verify(self, id_token: str, name: str = "") -> VerifiedIdentity:
        """Apple ID 토큰 검증 (이름은 최초 로그인 시 클라이언트가 따로 전달)"""
        jwks = await self.fetch_keys()

        try:
            key_set = JsonWebKey.import_key_set(jwks)
            claims = self._jwt.decode(
                id_token,
                key_set,
                claims_options={
                    "iss": {"essential": True, "value": APPLE_ISSUER},
                    "aud": {"essential": True, "value": self.client_id},
                    "exp": {"essential": True},
                    "sub": {"essential": True},
                },
            )
            claims.validate()
        except (JoseError, ValueError) as e:
            raise OAuthVerificationError(f"apple token invalid: {type(e).__name__}") from e

        email = claims.get("email")
        if not email:
            raise OAuthVerificationError("missing email")
        if "email_verified" in claims and not _is_true(claims["email_verified"]):
            raise OAuthVerificationError("email not verified")

        return VerifiedIdentity(
            provider=self.provider,
            subject=str(claims["sub"]),
            email=email,
            name=name,
        )
