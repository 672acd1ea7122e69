"""Session cookie transport."""

from starlette.responses import Response

from accesshub.auth.types import AuthType, SessionToken
from accesshub.config import Settings

# Browsers cap cookie lifetime at 400 days
PERSISTENT_COOKIE_MAX_AGE = 400 * 24 * 60 * 60


def session_cookie_max_age(token: SessionToken) -> int:
    if token.expires_in is None or token.auth_type is AuthType.PERSISTENT:
        return PERSISTENT_COOKIE_MAX_AGE
    return token.expires_in


def set_session_cookie(response: Response, token: SessionToken, settings: Settings) -> None:
    """Attach the session token as an HTTP-only cookie."""
    response.set_cookie(
        key=settings.cookie_name,
        value=token.token,
        max_age=session_cookie_max_age(token),
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite=settings.cookie_samesite,
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    """Overwrite the session cookie with an empty, already expired value."""
    response.set_cookie(
        key=settings.cookie_name,
        value="",
        max_age=0,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite=settings.cookie_samesite,
    )
