"""Resource/action grants attached to roles through access policies.

An AccessPolicy groups Permission rows, one per role. Each Permission
carries ``rolePermissions``: a list of ``{resource, actions}`` grants. A
role may perform an action on a resource when any of its Permission rows
has a grant for that resource listing the action.
"""

from collections.abc import Iterable
from typing import Any

from accesshub.errors import FieldError, ValidationError
from accesshub.persistence import DocumentStore

RESOURCES = ("organization", "user", "role", "app", "module")
ACTIONS = ("create", "read", "update", "delete")


def validate_grant(resource: str, action: str) -> None:
    errors = []
    if resource not in RESOURCES:
        errors.append(FieldError("resource", f"Unknown resource '{resource}'"))
    if action not in ACTIONS:
        errors.append(FieldError("action", f"Unknown action '{action}'"))
    if errors:
        raise ValidationError("Invalid permission check", errors)


def normalize_role_permissions(items: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Validate grants and collapse duplicates, keeping first-seen order.

    Raises:
        ValidationError: for unknown resources or actions
    """
    merged: dict[str, list[str]] = {}
    errors = []
    for i, item in enumerate(items):
        resource = item.get("resource")
        if resource not in RESOURCES:
            errors.append(FieldError(f"rolePermissions.{i}.resource", f"Unknown resource '{resource}'"))
            continue
        actions = merged.setdefault(resource, [])
        for action in item.get("actions") or []:
            if action not in ACTIONS:
                errors.append(FieldError(f"rolePermissions.{i}.actions", f"Unknown action '{action}'"))
            elif action not in actions:
                actions.append(action)
    if errors:
        raise ValidationError("Invalid role permissions", errors)
    return [{"resource": r, "actions": a} for r, a in merged.items()]


def grants(permissions: Iterable[dict[str, Any]], resource: str, action: str) -> bool:
    """Whether any Permission row grants ``action`` on ``resource``."""
    for permission in permissions:
        for grant in permission.get("rolePermissions") or []:
            if grant.get("resource") == resource and action in (grant.get("actions") or []):
                return True
    return False


def permission_check_where(role_ids: list[str], resource: str, action: str) -> dict[str, Any]:
    """Store query selecting Permission rows that grant the action to any of the roles."""
    return {
        "AND": [
            {"roleId": {"in": list(role_ids)}},
            {"rolePermissions": {"some": {"resource": resource, "actions": {"has": action}}}},
            {"accessPolicy": {"is": {"deletedAt": None}}},
        ]
    }


class PermissionChecker:
    """Answers resource/action checks from stored Permission rows."""

    def __init__(self, store: DocumentStore):
        self._store = store

    def is_allowed(self, role_ids: list[str], resource: str, action: str) -> bool:
        validate_grant(resource, action)
        if not role_ids:
            return False
        rows = self._store.find_many(
            "Permission",
            where=permission_check_where(role_ids, resource, action),
            select={"rolePermissions": True},
        )
        return grants(rows, resource, action)

    def role_ids_for_user(self, user_id: str) -> list[str]:
        links = self._store.find_many(
            "UserRole",
            where={"userId": user_id, "role": {"is": {"deletedAt": None}}},
            select={"roleId": True},
        )
        return [link["roleId"] for link in links]

    def is_allowed_for_user(self, user_id: str, resource: str, action: str) -> bool:
        return self.is_allowed(self.role_ids_for_user(user_id), resource, action)
