"""Account registration, login and password management."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from accesshub.auth.jwt_service import JWTService, normalize_auth_type
from accesshub.auth.password import PasswordService
from accesshub.auth.types import SessionClaims, SessionToken
from accesshub.errors import (
    AuthenticationError,
    ConflictError,
    FieldError,
    NotFoundError,
)
from accesshub.metadata import MetadataLoader
from accesshub.persistence import DocumentStore
from accesshub.persistence.base import utcnow

INVALID_CREDENTIALS = "Invalid credentials"

PROFILE_SELECT = {
    "person": True,
    "organization": True,
    "roles": {"select": {"role": True}},
}


@dataclass
class LoginResult:
    profile: dict[str, Any]
    token: SessionToken


class AuthService:
    """Credential checks and session issuance on top of the document store."""

    def __init__(
        self,
        store: DocumentStore,
        metadata: MetadataLoader,
        passwords: PasswordService,
        jwt_service: JWTService,
        logger: logging.Logger | None = None,
    ):
        self._store = store
        self._metadata = metadata
        self._passwords = passwords
        self._jwt = jwt_service
        self._logger = logger or logging.getLogger(__name__)

    def register(self, account: dict[str, Any], person: dict[str, Any]) -> dict[str, Any]:
        """Create a Person and its User in one transaction.

        Self-registered accounts start without roles; roles are granted
        through the users endpoints, which require user permissions.

        Raises:
            ConflictError: if the email or username is already on file,
                including soft-deleted accounts
        """
        email = account["email"]
        user_name = account["userName"]
        existing = self._store.find_first(
            "User", where={"OR": [{"email": email}, {"userName": user_name}]}
        )
        if existing is not None:
            field = "email" if existing.get("email") == email else "userName"
            raise ConflictError(
                "User with this email or username already exists",
                [FieldError(field, f"{field} is already registered")],
            )

        user_data = {k: v for k, v in account.items() if k != "password"}
        if account.get("password"):
            user_data["password"] = self._passwords.hash(account["password"])
        user_data.setdefault("status", "active")

        with self._store.transaction():
            created_person = self._store.create("Person", person)
            user_data["personId"] = created_person["id"]
            user = self._store.create("User", user_data)

        self._logger.info("Registered user %s", user["id"])
        return self.profile(user["id"])

    def login(self, identifier: str, password: str) -> LoginResult:
        """Check credentials and issue a session token.

        ``identifier`` is a username or an email address. Every failure
        raises the same AuthenticationError.
        """
        user = self._store.find_first(
            "User",
            where={
                "AND": [
                    {"deletedAt": None},
                    {"OR": [{"email": identifier}, {"userName": identifier}]},
                ]
            },
        )
        if user is None or not self._passwords.verify(password, user.get("password")):
            self._logger.info("Failed login attempt")
            raise AuthenticationError(INVALID_CREDENTIALS)

        updates: dict[str, Any] = {"lastLoginAt": utcnow()}
        if self._passwords.needs_rehash(user["password"]):
            updates["password"] = self._passwords.hash(password)
        self._store.update("User", user["id"], updates)

        profile = self.profile(user["id"])
        person = profile.get("person") or {}
        claims = SessionClaims(
            user_id=user["id"],
            roles=[r["name"] for r in profile["roles"]],
            first_name=person.get("firstName") or "",
            last_name=person.get("lastName") or "",
            organization_id=user.get("organizationId"),
            auth_type=normalize_auth_type((user.get("metadata") or {}).get("authType")),
        )
        token = self._jwt.issue_session_token(claims)
        self._logger.info("User %s logged in (%s session)", user["id"], token.auth_type.value)
        return LoginResult(profile=profile, token=token)

    def update_password(self, user_id: str, current_password: str, new_password: str) -> None:
        """Replace the password after checking the current one.

        Raises:
            NotFoundError: if the user no longer exists
            AuthenticationError: if ``current_password`` does not match
        """
        user = self._store.find_first("User", where={"id": user_id, "deletedAt": None})
        if user is None:
            raise NotFoundError("User not found")
        if not self._passwords.verify(current_password, user.get("password")):
            raise AuthenticationError("Current password is incorrect")

        self._store.update("User", user_id, {"password": self._passwords.hash(new_password)})
        self._logger.info("Password updated for user %s", user_id)

    def profile(self, user_id: str) -> dict[str, Any]:
        """The user with person, organization and live roles, without secrets."""
        select = {name: True for name in self._metadata.require_entity("User").default_selection}
        select.update(PROFILE_SELECT)
        user = self._store.find_first(
            "User", where={"id": user_id, "deletedAt": None}, select=select
        )
        if user is None:
            raise NotFoundError("User not found")

        links = user.pop("roles", None) or []
        user["roles"] = [
            {"id": link["role"]["id"], "name": link["role"]["name"], "roleType": link["role"].get("roleType")}
            for link in links
            if link.get("role") and link["role"].get("deletedAt") is None
        ]
        return self._metadata.redact("User", user)
