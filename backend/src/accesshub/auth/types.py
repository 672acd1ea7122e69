"""Type definitions for authentication."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class AuthType(str, Enum):
    """Session lifetime class stored on the user (``metadata.authType``)."""

    STANDARD = "standard"
    TEMPORARY = "temporary"
    PERSISTENT = "persistent"


# Token lifetime in seconds; None means the token never expires
AUTH_TYPE_TTLS: dict[AuthType, int | None] = {
    AuthType.TEMPORARY: 60 * 60,
    AuthType.STANDARD: 24 * 60 * 60,
    AuthType.PERSISTENT: None,
}


@dataclass
class SessionClaims:
    """Claims embedded in a session token.

    Attributes:
        user_id: The authenticated user's ID
        roles: Names of the user's roles
        first_name: From the user's person profile
        last_name: From the user's person profile
        organization_id: The user's organization, if any
        auth_type: Lifetime class of the session
        iat: Issued-at timestamp
        exp: Expiration timestamp, None for persistent sessions
    """

    user_id: str
    roles: list[str] = field(default_factory=list)
    first_name: str = ""
    last_name: str = ""
    organization_id: str | None = None
    auth_type: AuthType = AuthType.STANDARD
    iat: int = 0
    exp: int | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "userId": self.user_id,
            "roles": list(self.roles),
            "firstName": self.first_name,
            "lastName": self.last_name,
            "authType": self.auth_type.value,
        }
        if self.organization_id:
            payload["organizationId"] = self.organization_id
        return payload


@dataclass
class SessionToken:
    """A signed session token and its lifetime."""

    token: str
    auth_type: AuthType
    expires_in: int | None  # seconds, None for persistent sessions


@dataclass
class UserContext:
    """The authenticated caller, as seen by request handlers."""

    user_id: str
    roles: list[str] = field(default_factory=list)
    organization_id: str | None = None
    auth_type: AuthType = AuthType.STANDARD
