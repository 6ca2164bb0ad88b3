# app/schemas/guardian.py
from pydantic import BaseModel, Field
from datetime import datetime

class GuardianCreate(BaseModel):
    """보호자 추가 요청"""
    name: str = Field("", max_length=200)
    email: str | None = Field(None, max_length=254)
    phone: str | None = Field(None, max_length=30)
    relationship: str | None = Field(None, max_length=50)
    role: str | None = Field(None, max_length=30)
    notes: str | None = Field(None, max_length=5000)
    access_type: str | None = None  # normal, emergency, memorial
    pin: str | None = Field(None, max_length=64)

class GuardianUpdate(GuardianCreate):
    name: str | None = Field(None, max_length=200)

class GuardianResponse(BaseModel):
    """보호자 응답 (PIN 해시 대신 has_pin)"""
    id: str
    name: str
    email: str | None = None
    phone: str | None = None
    relationship: str | None = None
    role: str
    notes: str | None = None
    access_type: str
    access_token: str  # 보호자에게 전달할 접근 링크 토큰
    has_pin: bool
    created_at: datetime | None = None

    class Config:
        from_attributes = True

class GuardianListResponse(BaseModel):
    guardians: list[GuardianResponse]
