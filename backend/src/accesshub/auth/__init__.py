"""Authentication and authorization for AccessHub."""

from accesshub.auth.types import (
    AUTH_TYPE_TTLS,
    AuthType,
    SessionClaims,
    SessionToken,
    UserContext,
)
from accesshub.auth.password import PasswordService
from accesshub.auth.jwt_service import (
    InvalidTokenError,
    JWTError,
    JWTService,
    TokenExpiredError,
    normalize_auth_type,
)
from accesshub.auth.cookies import clear_session_cookie, set_session_cookie
from accesshub.auth.middleware import AuthMiddleware, get_user_context
from accesshub.auth.dependencies import (
    require_authenticated,
    require_permission,
)
from accesshub.auth.permissions import (
    ACTIONS,
    RESOURCES,
    PermissionChecker,
    grants,
    normalize_role_permissions,
)
from accesshub.auth.service import AuthService, LoginResult

__all__ = [
    "AUTH_TYPE_TTLS",
    "AuthType",
    "SessionClaims",
    "SessionToken",
    "UserContext",
    "PasswordService",
    "InvalidTokenError",
    "JWTError",
    "JWTService",
    "TokenExpiredError",
    "normalize_auth_type",
    "clear_session_cookie",
    "set_session_cookie",
    "AuthMiddleware",
    "get_user_context",
    "require_authenticated",
    "require_permission",
    "ACTIONS",
    "RESOURCES",
    "PermissionChecker",
    "grants",
    "normalize_role_permissions",
    "AuthService",
    "LoginResult",
]
