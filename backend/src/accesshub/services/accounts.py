"""Users and organizations: CRUD plus their link tables."""

from __future__ import annotations

from typing import Any

from accesshub.auth.password import PasswordService
from accesshub.errors import ConflictError, FieldError, NotFoundError
from accesshub.services.entities import CreateResult, EntityService


class UserService(EntityService):
    """Users are accounts: duplicate emails or usernames are conflicts, not lookups."""

    def __init__(self, *args: Any, passwords: PasswordService, **kwargs: Any):
        super().__init__("User", *args, **kwargs)
        self.passwords = passwords

    def create(self, data: dict[str, Any]) -> CreateResult:
        data = dict(data)
        role_ids = data.pop("roles", None) or []
        self.check_references(data)
        if self.store.find_first("User", where={"OR": [{"email": data["email"]}, {"userName": data["userName"]}]}):
            raise ConflictError(
                "User with this email or username already exists",
                [FieldError("email", "Value is already taken")],
            )
        if data.get("password"):
            data["password"] = self.passwords.hash(data["password"])
        self._require_roles(role_ids)

        with self.store.transaction():
            record = self.store.create("User", data)
            self._link_roles(record["id"], role_ids)

        self.logger.info("Created User %s", record["id"])
        return CreateResult(self.present(record), created=True)

    def update(self, id: str, data: dict[str, Any]) -> dict[str, Any]:
        """Update fields; ``roles`` adds links to roles the user doesn't have yet."""
        data = dict(data)
        role_ids = data.pop("roles", None)
        if role_ids:
            self._require_roles(role_ids)

        with self.store.transaction():
            record = super().update(id, data) if data else self.present(self.require(id))
            if role_ids:
                self._link_roles(id, role_ids)
        return record

    def _require_roles(self, role_ids: list[str]) -> None:
        for role_id in role_ids:
            if self.store.find_first("Role", where={"id": role_id, "deletedAt": None}) is None:
                raise NotFoundError("Role not found", [FieldError("roles", f"Role not found: {role_id}")])

    def _link_roles(self, user_id: str, role_ids: list[str]) -> None:
        linked = {
            link["roleId"]
            for link in self.store.find_many("UserRole", where={"userId": user_id}, select={"roleId": True})
        }
        for role_id in dict.fromkeys(role_ids):
            if role_id not in linked:
                self.store.create("UserRole", {"userId": user_id, "roleId": role_id})


class OrganizationService(EntityService):
    """Organizations and the apps enabled for them."""

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__("Organization", *args, **kwargs)

    def create(self, data: dict[str, Any]) -> CreateResult:
        data = dict(data)
        app_ids = data.pop("appIds", None)
        if app_ids:
            self._require_apps(app_ids)

        with self.store.transaction():
            result = super().create(data)
            if result.created and app_ids:
                self._replace_apps(result.record["id"], app_ids)
        return CreateResult(self._with_apps(result.record), result.created)

    def update(self, id: str, data: dict[str, Any]) -> dict[str, Any]:
        """Update fields; ``appIds`` replaces the organization's app links, atomically."""
        data = dict(data)
        app_ids = data.pop("appIds", None)
        if app_ids:
            self._require_apps(app_ids)

        with self.store.transaction():
            record = super().update(id, data) if data else self.present(self.require(id))
            if app_ids is not None:
                self._replace_apps(id, app_ids)
        return self._with_apps(record)

    def _require_apps(self, app_ids: list[str]) -> None:
        for app_id in app_ids:
            if self.store.find_first("App", where={"id": app_id, "deletedAt": None}) is None:
                raise NotFoundError("App not found", [FieldError("appIds", f"App not found: {app_id}")])

    def _replace_apps(self, organization_id: str, app_ids: list[str]) -> None:
        self.store.delete_many("OrganizationApp", where={"organizationId": organization_id})
        for app_id in dict.fromkeys(app_ids):
            self.store.create("OrganizationApp", {"organizationId": organization_id, "appId": app_id})

    def _with_apps(self, record: dict[str, Any]) -> dict[str, Any]:
        links = self.store.find_many(
            "OrganizationApp", where={"organizationId": record["id"]}, select={"appId": True}
        )
        return {**record, "appIds": [link["appId"] for link in links]}
