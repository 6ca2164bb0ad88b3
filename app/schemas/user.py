# app/schemas/user.py
from pydantic import BaseModel, EmailStr, Field
from datetime import datetime

from app.schemas.box import BoxItemResponse
from app.schemas.guardian import GuardianResponse
from app.schemas.user_settings import SettingsResponse

class UserCreate(BaseModel):
    """회원가입 요청"""
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=128)

class UserLogin(BaseModel):
    """로그인 요청"""
    email: str = Field(..., max_length=254)
    password: str = Field(..., max_length=128)

class UserResponse(BaseModel):
    """유저 응답"""
    id: str
    email: str
    name: str
    provider: str
    avatar_url: str | None = None
    locale: str | None = None
    created_at: datetime | None = None
    is_admin: bool = False

    class Config:
        from_attributes = True

class AuthResponse(BaseModel):
    """로그인/가입 응답 (토큰은 쿠키로만 전달)"""
    user: UserResponse
    expires_at: datetime

class MessageResponse(BaseModel):
    message: str

class OAuthTokenRequest(BaseModel):
    """소셜 로그인 요청 (클라이언트가 받은 ID 토큰)"""
    id_token: str = Field(..., min_length=1, max_length=8192)
    name: str | None = Field(None, max_length=100)  # Apple은 최초 로그인 때만 이름 제공

class OAuthStatusResponse(BaseModel):
    google: bool
    apple: bool

class ExportedShareLink(BaseModel):
    id: str
    name: str
    type: str
    categories: list[str] = []
    expires_at: datetime | None = None
    max_uses: int
    usage_count: int
    is_active: bool
    created_at: datetime | None = None

    class Config:
        from_attributes = True

class AccountDeleteRequest(BaseModel):
    """계정 삭제 요청 (소셜 로그인 유저는 비밀번호 없음)"""
    password: str = Field("", max_length=128)
    confirmation: str = Field(..., max_length=50)  # "EXCLUIR MINHA CONTA" / "DELETE MY ACCOUNT"

class DataExportResponse(BaseModel):
    """내 데이터 내보내기 (비밀번호 / PIN 해시 제외)"""
    user: UserResponse
    items: list[BoxItemResponse]
    guardians: list[GuardianResponse]
    share_links: list[ExportedShareLink]
    settings: SettingsResponse
    exported_at: datetime
