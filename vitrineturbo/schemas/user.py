"""
VitrineTurbo - User Management Schemas
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Literal


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=2, max_length=255)
    whatsapp: Optional[str] = Field(None, max_length=20)
    # Parceiro sempre cria corretor, o valor é ignorado
    role: Literal["corretor", "parceiro", "admin"] = "corretor"
    listing_limit: int = Field(5, ge=0)


class PasswordChange(BaseModel):
    new_password: str = Field(..., min_length=6)


class EmailChange(BaseModel):
    new_email: EmailStr
