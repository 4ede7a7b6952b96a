from .auth import LoginRequest, RegisterRequest, LoginResponse, SessionResponse, PermissionsResponse
from .cart import CartItem, CartStats, OrderItemRequest, OrderRequest, OrderResponse
from .referral import (
    PixKeyRequest,
    PixKeyResponse,
    PixValidateRequest,
    PixValidateResponse,
    WithdrawalCreate,
    WithdrawalAction,
    ReferralLinkResponse,
    CommissionAmountResponse
)
from .catalog import ProductCreate, CustomSizeRequest, CustomSizeResponse
from .user import UserCreate, PasswordChange, EmailChange

__all__ = [
    "LoginRequest",
    "RegisterRequest",
    "LoginResponse",
    "SessionResponse",
    "PermissionsResponse",
    "CartItem",
    "CartStats",
    "OrderItemRequest",
    "OrderRequest",
    "OrderResponse",
    "PixKeyRequest",
    "PixKeyResponse",
    "PixValidateRequest",
    "PixValidateResponse",
    "WithdrawalCreate",
    "WithdrawalAction",
    "ReferralLinkResponse",
    "CommissionAmountResponse",
    "ProductCreate",
    "CustomSizeRequest",
    "CustomSizeResponse",
    "UserCreate",
    "PasswordChange",
    "EmailChange"
]
