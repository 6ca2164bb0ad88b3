# app/schemas/user_settings.py
from pydantic import BaseModel
from typing import Literal

class SettingsUpdate(BaseModel):
    emergency_protocol_enabled: bool | None = None
    notifications_enabled: bool | None = None
    theme: Literal["light", "dark", "auto"] | None = None

class SettingsResponse(BaseModel):
    emergency_protocol_enabled: bool
    notifications_enabled: bool
    theme: str

    class Config:
        from_attributes = True
