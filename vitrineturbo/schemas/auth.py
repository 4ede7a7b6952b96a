"""
VitrineTurbo - Auth Schemas
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=2, max_length=255)
    whatsapp: Optional[str] = Field(None, max_length=20)
    referral_code: Optional[str] = Field(None, max_length=20)


class LoginResponse(BaseModel):
    session_id: str
    token_type: str = "bearer"
    expires_at: int
    user: dict


class SessionResponse(BaseModel):
    id: str
    role: str
    role_label: str
    session_id: str
    display_name: str
    email: Optional[str] = None
    expires_at: int
    last_activity: Optional[int] = None


class PermissionsResponse(BaseModel):
    role: str
    can_manage_users: bool
    can_manage_finances: bool
    can_manage_settings: bool
    can_create_products: bool
    can_view_analytics: bool
