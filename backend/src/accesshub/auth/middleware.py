"""Authentication middleware for FastAPI."""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from accesshub.auth.jwt_service import JWTError, JWTService
from accesshub.auth.types import UserContext


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware that reads the session token and sets user context.

    The token is taken from the session cookie, or from an
    ``Authorization: Bearer`` header for non-browser clients. On success
    ``request.state.user_context`` and ``request.state.session_claims`` are
    set; otherwise both are None. Unauthenticated requests are not
    rejected here - that's handled by the endpoint dependencies.
    """

    def __init__(self, app, jwt_service: JWTService, cookie_name: str = "token"):
        super().__init__(app)
        self._jwt_service = jwt_service
        self._cookie_name = cookie_name

    async def dispatch(self, request: Request, call_next) -> Response:
        request.state.user_context = None
        request.state.session_claims = None

        token = self._extract_token(request)
        if token:
            try:
                claims = self._jwt_service.decode_token(token)
            except JWTError:
                # Invalid or expired token - leave the request unauthenticated
                claims = None
            if claims is not None:
                request.state.session_claims = claims
                request.state.user_context = UserContext(
                    user_id=claims.user_id,
                    roles=claims.roles,
                    organization_id=claims.organization_id,
                    auth_type=claims.auth_type,
                )

        return await call_next(request)

    def _extract_token(self, request: Request) -> str | None:
        token = request.cookies.get(self._cookie_name)
        if token:
            return token
        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            return auth_header[7:]
        return None


def get_user_context(request: Request) -> UserContext | None:
    """Get the user context from the request state, None if unauthenticated."""
    return getattr(request.state, "user_context", None)
