from .config import settings, get_settings
from .errors import (
    ErrorKind,
    VitrineError,
    SessionExpiredError,
    PermissionDeniedError,
    BackendError,
    ValidationFailedError,
    NotFoundError,
    BlockedUserError,
    AuthenticationError,
    get_error_message,
    error_from_kind,
)
from .security import (
    verify_password,
    get_password_hash,
    generate_session_id,
    generate_referral_code,
)
from .permissions import (
    Role,
    Action,
    Capabilities,
    check_permission,
    require_permission,
    get_user_permissions,
    format_user_role,
)
from .session_store import (
    Storage,
    MemoryStorage,
    JsonFileStorage,
    NamespacedStorage,
    SessionRecord,
    SessionStore,
    SessionRegistry,
)
from .auth_middleware import with_auth, create_authenticated_api, get_auth_headers

__all__ = [
    "settings",
    "get_settings",
    "ErrorKind",
    "VitrineError",
    "SessionExpiredError",
    "PermissionDeniedError",
    "BackendError",
    "ValidationFailedError",
    "NotFoundError",
    "BlockedUserError",
    "AuthenticationError",
    "get_error_message",
    "error_from_kind",
    "verify_password",
    "get_password_hash",
    "generate_session_id",
    "generate_referral_code",
    "Role",
    "Action",
    "Capabilities",
    "check_permission",
    "require_permission",
    "get_user_permissions",
    "format_user_role",
    "Storage",
    "MemoryStorage",
    "JsonFileStorage",
    "NamespacedStorage",
    "SessionRecord",
    "SessionStore",
    "SessionRegistry",
    "with_auth",
    "create_authenticated_api",
    "get_auth_headers",
]
