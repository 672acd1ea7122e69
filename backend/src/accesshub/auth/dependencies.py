"""FastAPI dependencies for authentication and authorization."""

from typing import Callable

from fastapi import Request

from accesshub.auth.middleware import get_user_context
from accesshub.auth.permissions import validate_grant
from accesshub.auth.types import UserContext
from accesshub.errors import AuthenticationError, PermissionDeniedError


def require_authenticated(request: Request) -> UserContext:
    """Dependency that requires an authenticated caller.

    Raises:
        AuthenticationError: if the request carries no valid session
    """
    user_context = get_user_context(request)
    if not user_context:
        raise AuthenticationError("Authentication required")
    return user_context


def require_permission(resource: str, action: str) -> Callable[[Request], UserContext | None]:
    """Create a dependency that requires a resource/action grant.

    The caller's roles are looked up at request time, so role changes take
    effect without a new login. When auth is disabled in settings the check
    is skipped and the (possibly missing) user context is returned.

    Example:
        @router.delete("/{id}")
        def delete_role(id: str, user=Depends(require_permission("role", "delete"))):
            ...
    """
    validate_grant(resource, action)

    def dependency(request: Request) -> UserContext | None:
        context = request.app.state.context
        if context.settings.disable_auth:
            return get_user_context(request)

        user_context = require_authenticated(request)
        if not context.permissions.is_allowed_for_user(user_context.user_id, resource, action):
            raise PermissionDeniedError(f"Insufficient permissions: {action} on {resource}")
        return user_context

    return dependency
