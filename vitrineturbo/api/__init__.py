from .auth import router as auth_router
from .storefront import router as storefront_router
from .referrals import router as referrals_router, admin_router
from .catalog import router as catalog_router
from .users import router as users_router

__all__ = [
    "auth_router",
    "storefront_router",
    "referrals_router",
    "admin_router",
    "catalog_router",
    "users_router"
]
