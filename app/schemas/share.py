# app/schemas/share.py
from pydantic import BaseModel, Field
from datetime import datetime

class ShareLinkCreate(BaseModel):
    """공유 링크 생성 요청"""
    name: str | None = Field(None, max_length=200)
    type: str = "normal"                       # normal, emergency, memorial
    categories: list[str] = Field(default_factory=list, max_length=50)
    pin: str | None = Field(None, max_length=64)
    expires_in_days: int = Field(0, ge=0, le=3650)  # 0이면 만료 없음
    max_uses: int = Field(0, ge=0, le=100000)        # 0이면 무제한
    guardian_ids: list[str] = Field(default_factory=list, max_length=50)
    guardian_id: str | None = None             # 구버전 클라이언트

class ShareLinkResponse(BaseModel):
    """공유 링크 응답 (PIN 해시는 노출하지 않음)"""
    id: str
    name: str
    type: str
    token: str
    url: str
    categories: list[str]
    guardian_ids: list[str]
    has_pin: bool
    expires_at: datetime | None
    max_uses: int
    usage_count: int
    access_count: int = 0  # 접근 기록 수
    last_used_at: datetime | None
    is_active: bool
    created_at: datetime | None

class ShareLinkListResponse(BaseModel):
    links: list[ShareLinkResponse]

class PinVerifyRequest(BaseModel):
    pin: str = Field(..., max_length=64)

class SharedItem(BaseModel):
    id: str
    type: str
    title: str
    content: str | None = None
    category: str | None = None
    recipient: str | None = None
    is_important: bool = False

class SharedGuardian(BaseModel):
    name: str
    email: str | None = None
    phone: str | None = None
    relationship: str | None = None

class SharedViewResponse(BaseModel):
    """공유 링크로 보이는 내용"""
    type: str
    requires_pin: bool = False
    owner_name: str | None = None
    owner_email: str | None = None
    message: str | None = None
    guardian_name: str | None = None
    items: list[SharedItem] = []
    guardians: list[SharedGuardian] = []

class GuardianAccessGuardian(BaseModel):
    name: str
    relationship: str | None = None

class GuardianAccessOwner(BaseModel):
    name: str
    email: str | None = None

class GuardianAccessResponse(BaseModel):
    """보호자 전용 링크로 보이는 내용 (PIN이 있으면 이름만)"""
    requires_pin: bool = False
    guardian: GuardianAccessGuardian
    owner: GuardianAccessOwner
    access_type: str | None = None
    items: list[SharedItem] = []
    accessed_at: datetime | None = None
