"""Authentication API endpoints."""

from fastapi import APIRouter, Depends

from accesshub.api.envelope import success
from accesshub.api.schemas import LoginRequest, RegisterRequest, UpdatePasswordRequest
from accesshub.auth.cookies import clear_session_cookie, set_session_cookie
from accesshub.auth.dependencies import require_authenticated
from accesshub.auth.service import AuthService
from accesshub.auth.types import UserContext
from accesshub.config import Settings


def create_auth_router(auth_service: AuthService, settings: Settings) -> APIRouter:
    """Create the auth router with injected dependencies.

    Args:
        auth_service: Registration, login and password operations
        settings: Cookie name and security flags

    Returns:
        Configured APIRouter
    """
    router = APIRouter(prefix="/api/auth", tags=["auth"])

    @router.post("/register", status_code=201)
    def register(request: RegisterRequest):
        """Create an account and its person profile."""
        account, person = request.split()
        user = auth_service.register(account, person)
        return success("User registered successfully", user, status_code=201)

    @router.post("/login")
    def login(request: LoginRequest):
        """Check credentials and set the session cookie."""
        result = auth_service.login(request.identifier, request.password)
        response = success("Login successful", result.profile)
        set_session_cookie(response, result.token, settings)
        return response

    @router.post("/logout")
    def logout():
        """Clear the session cookie. Tokens are stateless; nothing is revoked server-side."""
        response = success("Logout successful")
        clear_session_cookie(response, settings)
        return response

    @router.put("/password")
    def update_password(
        request: UpdatePasswordRequest,
        user: UserContext = Depends(require_authenticated),
    ):
        auth_service.update_password(user.user_id, request.current_password, request.new_password)
        return success("Password updated successfully")

    @router.get("/me")
    def me(user: UserContext = Depends(require_authenticated)):
        return success("Current user retrieved successfully", auth_service.profile(user.user_id))

    return router
