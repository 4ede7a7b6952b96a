"""
VitrineTurbo - Referral Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, Literal

PixKeyTypeLiteral = Literal["cpf", "cnpj", "phone", "email", "random"]


class PixKeyRequest(BaseModel):
    pix_key: str = Field(..., min_length=1, max_length=140)
    pix_key_type: PixKeyTypeLiteral
    holder_name: str = Field(..., min_length=1, max_length=255)


class PixKeyResponse(BaseModel):
    pix_key: str
    pix_key_type: str
    holder_name: str
    formatted_key: str


class PixValidateRequest(BaseModel):
    pix_key: str
    pix_key_type: str


class PixValidateResponse(BaseModel):
    valid: bool
    formatted_key: str


class WithdrawalCreate(BaseModel):
    amount: float = Field(..., gt=0)


class WithdrawalAction(BaseModel):
    notes: Optional[str] = Field(None, max_length=1000)


class ReferralLinkResponse(BaseModel):
    referral_code: str
    link: str


class CommissionAmountResponse(BaseModel):
    plan_type: str
    amount: float
    formatted_amount: str
