"""Access policies and the Permission rows that grant roles access."""

from __future__ import annotations

from typing import Any

from accesshub.auth.permissions import normalize_role_permissions
from accesshub.errors import NotFoundError
from accesshub.services.entities import CreateResult, EntityService


class PermissionService(EntityService):
    """One Permission per (accessPolicyId, roleId).

    Creating a pair that already exists returns the stored row untouched.
    """

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__("Permission", *args, **kwargs)

    def create(self, data: dict[str, Any]) -> CreateResult:
        data = dict(data)
        data["rolePermissions"] = normalize_role_permissions(data.get("rolePermissions") or [])
        return super().create(data)

    def update(self, id: str, data: dict[str, Any]) -> dict[str, Any]:
        data = dict(data)
        if "rolePermissions" in data:
            data["rolePermissions"] = normalize_role_permissions(data["rolePermissions"] or [])
        return super().update(id, data)

    def find_pair(self, access_policy_id: str, role_id: str) -> dict[str, Any] | None:
        return self.store.find_first(
            "Permission", where={"accessPolicyId": access_policy_id, "roleId": role_id}
        )


class AccessPolicyService(EntityService):
    """Access policies and role assignment within them."""

    def __init__(self, *args: Any, permissions: PermissionService, **kwargs: Any):
        super().__init__("AccessPolicy", *args, **kwargs)
        self.permissions = permissions

    def assign_role(
        self, policy_id: str, role_id: str, role_permissions: list[dict[str, Any]]
    ) -> CreateResult:
        """Grant a role under the policy. Re-assigning returns the existing grant."""
        self.require(policy_id)
        return self.permissions.create(
            {"accessPolicyId": policy_id, "roleId": role_id, "rolePermissions": role_permissions}
        )

    def update_role_permissions(
        self, policy_id: str, role_id: str, role_permissions: list[dict[str, Any]]
    ) -> dict[str, Any]:
        permission = self._require_pair(policy_id, role_id)
        return self.permissions.update(permission["id"], {"rolePermissions": role_permissions})

    def remove_role(self, policy_id: str, role_id: str) -> dict[str, Any]:
        permission = self._require_pair(policy_id, role_id)
        return self.permissions.delete(permission["id"])

    def _require_pair(self, policy_id: str, role_id: str) -> dict[str, Any]:
        self.require(policy_id)
        permission = self.permissions.find_pair(policy_id, role_id)
        if permission is None:
            raise NotFoundError("Role is not assigned to this access policy")
        return permission
