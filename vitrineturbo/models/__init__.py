from .user import User
from .product import Product, UserCustomSize
from .subscription import Subscription, SubscriptionPlan, SubscriptionStatus, BillingCycle
from .referral import (
    ReferralCommission,
    UserPixKey,
    WithdrawalRequest,
    CommissionStatus,
    WithdrawalStatus,
    PixKeyType,
)

__all__ = [
    "User",
    "Product",
    "UserCustomSize",
    "Subscription",
    "SubscriptionPlan",
    "SubscriptionStatus",
    "BillingCycle",
    "ReferralCommission",
    "UserPixKey",
    "WithdrawalRequest",
    "CommissionStatus",
    "WithdrawalStatus",
    "PixKeyType",
]
