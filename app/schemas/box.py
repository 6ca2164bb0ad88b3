# app/schemas/box.py
from pydantic import BaseModel, Field
from datetime import datetime

ITEM_TYPES = ("info", "memory", "note", "access", "routine", "location")

class BoxItemCreate(BaseModel):
    """박스 아이템 생성 요청"""
    type: str = "info"
    title: str = Field("", max_length=1000)
    content: str | None = Field(None, max_length=50000)
    category: str | None = Field(None, max_length=50)
    recipient: str | None = Field(None, max_length=200)
    is_important: bool = False
    is_shared: bool = False

class BoxItemUpdate(BaseModel):
    """None인 필드는 변경하지 않음"""
    type: str | None = None
    title: str | None = Field(None, max_length=1000)
    content: str | None = Field(None, max_length=50000)
    category: str | None = Field(None, max_length=50)
    recipient: str | None = Field(None, max_length=200)
    is_important: bool | None = None
    is_shared: bool | None = None

class BoxItemResponse(BaseModel):
    id: str
    type: str
    title: str
    content: str | None = None
    category: str | None = None
    recipient: str | None = None
    is_important: bool
    is_shared: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

class BoxItemListResponse(BaseModel):
    items: list[BoxItemResponse]
