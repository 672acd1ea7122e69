"""Tests for resource/action grants and the permission checker.

Covers:
- validate_grant() / normalize_role_permissions()
- grants() over plain Permission rows
- PermissionChecker against the in-memory store
"""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from accesshub.auth.permissions import (
    PermissionChecker,
    grants,
    normalize_role_permissions,
    permission_check_where,
    validate_grant,
)
from accesshub.errors import ValidationError


# ── Helpers ──────────────────────────────────────────────────────────────────


def grant(resource, *actions):
    return {"resource": resource, "actions": list(actions)}


@pytest.fixture
def checker(store):
    return PermissionChecker(store)


@pytest.fixture
def setup(store):
    """An admin role with user read/update through one policy, and a viewer with nothing."""
    policy = store.create("AccessPolicy", {"name": "default"})
    admin = store.create("Role", {"name": "admin"})
    viewer = store.create("Role", {"name": "viewer"})
    store.create(
        "Permission",
        {
            "accessPolicyId": policy["id"],
            "roleId": admin["id"],
            "rolePermissions": [grant("user", "read", "update"), grant("role", "read")],
        },
    )
    return {"policy": policy, "admin": admin, "viewer": viewer}


# ── Validation ───────────────────────────────────────────────────────────────


class TestValidateGrant:
    def test_known_values(self):
        validate_grant("user", "read")

    def test_unknown_resource_and_action(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_grant("planet", "explode")
        assert [e.field for e in exc_info.value.errors] == ["resource", "action"]


class TestNormalizeRolePermissions:
    def test_duplicates_are_merged(self):
        result = normalize_role_permissions(
            [grant("user", "read"), grant("role", "read"), grant("user", "read", "delete")]
        )
        assert result == [grant("user", "read", "delete"), grant("role", "read")]

    def test_unknown_values_are_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            normalize_role_permissions([grant("user", "fly"), grant("moon", "read")])
        fields = [e.field for e in exc_info.value.errors]
        assert fields == ["rolePermissions.0.actions", "rolePermissions.1.resource"]

    def test_empty(self):
        assert normalize_role_permissions([]) == []


class TestGrants:
    def test_matching_grant(self):
        rows = [{"rolePermissions": [grant("user", "read")]}]
        assert grants(rows, "user", "read")
        assert not grants(rows, "user", "delete")
        assert not grants(rows, "role", "read")

    def test_rows_without_grants(self):
        assert not grants([{"rolePermissions": None}, {}], "user", "read")

    def test_where_tree(self):
        where = permission_check_where(["r1"], "user", "read")
        assert where["AND"][0] == {"roleId": {"in": ["r1"]}}
        assert where["AND"][1] == {
            "rolePermissions": {"some": {"resource": "user", "actions": {"has": "read"}}}
        }


# ── Checker ──────────────────────────────────────────────────────────────────


class TestPermissionChecker:
    def test_granted(self, checker, setup):
        admin = setup["admin"]["id"]
        assert checker.is_allowed([admin], "user", "read")
        assert checker.is_allowed([admin], "user", "update")
        assert checker.is_allowed([admin], "role", "read")

    def test_not_granted(self, checker, setup):
        assert not checker.is_allowed([setup["admin"]["id"]], "user", "delete")
        assert not checker.is_allowed([setup["viewer"]["id"]], "user", "read")

    def test_no_roles(self, checker, setup):
        assert not checker.is_allowed([], "user", "read")

    def test_any_role_is_enough(self, checker, setup):
        roles = [setup["viewer"]["id"], setup["admin"]["id"]]
        assert checker.is_allowed(roles, "user", "read")

    def test_deleted_policy_grants_nothing(self, store, checker, setup):
        store.update("AccessPolicy", setup["policy"]["id"], {"deletedAt": datetime.now(timezone.utc)})
        assert not checker.is_allowed([setup["admin"]["id"]], "user", "read")

    def test_fetched_rows_must_carry_the_grant(self):
        store = Mock()
        store.find_many.return_value = [{"rolePermissions": [grant("user", "read")]}]
        checker = PermissionChecker(store)

        assert checker.is_allowed(["r1"], "user", "read")
        assert not checker.is_allowed(["r1"], "user", "delete")
        assert store.find_many.call_args.kwargs["select"] == {"rolePermissions": True}

    def test_invalid_check(self, checker):
        with pytest.raises(ValidationError):
            checker.is_allowed(["r1"], "user", "fly")

    def test_user_roles(self, store, checker, setup):
        admin, viewer = setup["admin"], setup["viewer"]
        store.create("UserRole", {"userId": "u1", "roleId": admin["id"]})
        store.create("UserRole", {"userId": "u1", "roleId": viewer["id"]})
        store.update("Role", viewer["id"], {"deletedAt": datetime.now(timezone.utc)})

        assert checker.role_ids_for_user("u1") == [admin["id"]]
        assert checker.is_allowed_for_user("u1", "user", "update")
        assert not checker.is_allowed_for_user("u2", "user", "update")
