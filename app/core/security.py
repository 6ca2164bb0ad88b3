# app/core/security.py
import re
import unicodedata

from fastapi import Request
from passlib.context import CryptContext

from app.config import settings

# 비밀번호 / PIN 해싱 (bcrypt, 라운드 고정)
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds
)

def hash_password(password: str) -> str:
    """비밀번호 해싱"""
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """비밀번호 검증 (해시가 없어도 같은 시간 소모)"""
    if not hashed_password:
        pwd_context.dummy_verify()
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # 손상된 해시
        return False

def validate_password_strength(password: str) -> bool:
    """최소 8자, 문자 + 숫자"""
    if len(password) < 8 or len(password) > 128:
        return False
    return bool(re.search(r"[A-Za-z]", password)) and bool(re.search(r"\d", password))

def sanitize_text(value: str | None, max_length: int) -> str:
    """제어 문자 제거 + 길이 제한"""
    if not value:
        return ""
    cleaned = "".join(
        ch for ch in value
        if ch in "\n\t" or unicodedata.category(ch)[0] != "C"
    )
    return cleaned.strip()[:max_length]

def sanitize_name(name: str | None) -> str:
    return " ".join(sanitize_text(name, 100).split())

def get_client_ip(request: Request, trust_forwarded_for: bool | None = None) -> str:
    """클라이언트 IP (프록시 헤더는 신뢰 설정이 켜져 있을 때만)"""
    if trust_forwarded_for is None:
        trust_forwarded_for = settings.trust_forwarded_for

    if trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip.strip()
    return request.client.host if request.client else ""

def is_secure_request(request: Request, trust_forwarded_proto: bool = True) -> bool:
    """TLS 직접 연결 또는 신뢰된 프록시의 https 표시"""
    if request.url.scheme == "https":
        return True
    if trust_forwarded_proto and request.headers.get("x-forwarded-proto", "").lower() == "https":
        return True
    return False

def get_base_url(request: Request) -> str:
    """공유 URL 등에 쓰는 기본 URL"""
    if settings.public_base_url:
        return settings.public_base_url.rstrip("/")
    scheme = "https" if is_secure_request(request, settings.trust_forwarded_proto) else "http"
    host = request.headers.get("host") or request.url.netloc
    return f"{scheme}://{host}"

def is_admin_email(email: str | None) -> bool:
    """ADMIN_EMAILS 목록 확인 (개발 환경에서 목록이 없으면 모두 관리자)"""
    admins = [e.strip().lower() for e in settings.admin_emails.split(",") if e.strip()]
    if not admins:
        return not settings.is_production
    return bool(email) and email.lower() in admins
