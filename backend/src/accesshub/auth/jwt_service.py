"""Session token issuance and validation."""

import time
from typing import Any

import jwt

from accesshub.auth.types import AUTH_TYPE_TTLS, AuthType, SessionClaims, SessionToken


class JWTError(Exception):
    """Base exception for JWT-related errors."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is invalid or malformed."""

    pass


def normalize_auth_type(value: Any) -> AuthType:
    """Map a stored ``authType`` to a known value; anything unknown is standard."""
    if isinstance(value, AuthType):
        return value
    if isinstance(value, str):
        try:
            return AuthType(value.strip().lower())
        except ValueError:
            pass
    return AuthType.STANDARD


class JWTService:
    """Service for signing and validating session tokens.

    Uses HS256 algorithm with a shared secret key. Token lifetime follows
    the session's auth type: one hour, one day, or no expiry.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256"):
        """Initialize the JWT service.

        Args:
            secret_key: Secret key for signing tokens (should be at least 32 chars)
            algorithm: JWT algorithm (default HS256)
        """
        self._secret_key = secret_key
        self._algorithm = algorithm

    def issue_session_token(self, claims: SessionClaims) -> SessionToken:
        """Sign ``claims`` into a session token.

        The auth type is normalised before it decides the expiry.
        """
        auth_type = normalize_auth_type(claims.auth_type)
        ttl = AUTH_TYPE_TTLS[auth_type]
        now = int(time.time())

        payload = claims.to_payload()
        payload["authType"] = auth_type.value
        payload["iat"] = now
        if ttl is not None:
            payload["exp"] = now + ttl

        token = jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
        return SessionToken(token=token, auth_type=auth_type, expires_in=ttl)

    def decode_token(self, token: str) -> SessionClaims:
        """Decode and validate a session token.

        Raises:
            TokenExpiredError: If the token has expired
            InvalidTokenError: If the token is invalid or malformed
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}")

        user_id = payload.get("userId")
        if not user_id:
            raise InvalidTokenError("Invalid token: missing userId")

        return SessionClaims(
            user_id=user_id,
            roles=list(payload.get("roles") or []),
            first_name=payload.get("firstName", ""),
            last_name=payload.get("lastName", ""),
            organization_id=payload.get("organizationId"),
            auth_type=normalize_auth_type(payload.get("authType")),
            iat=payload.get("iat", 0),
            exp=payload.get("exp"),
        )
