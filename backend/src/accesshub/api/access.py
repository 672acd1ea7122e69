"""Role assignment within access policies, and permission checks."""

from fastapi import APIRouter, Depends, Query

from accesshub.api.envelope import success
from accesshub.api.schemas import AssignRoleRequest, UpdateRolePermissionsRequest
from accesshub.auth.dependencies import require_permission
from accesshub.auth.permissions import PermissionChecker
from accesshub.services import AccessPolicyService


def create_access_router(policies: AccessPolicyService, checker: PermissionChecker) -> APIRouter:
    router = APIRouter(prefix="/api", tags=["access"])

    @router.post("/access-policies/{policy_id}/roles", status_code=201)
    def assign_role(
        policy_id: str,
        request: AssignRoleRequest,
        _user=Depends(require_permission("role", "update")),
    ):
        grants = request.for_create()["rolePermissions"]
        result = policies.assign_role(policy_id, request.role_id, grants)
        if not result.created:
            return success("Existing permission found", result.record)
        return success("Role assigned to access policy", result.record, status_code=201)

    @router.put("/access-policies/{policy_id}/roles/{role_id}")
    def update_role_permissions(
        policy_id: str,
        role_id: str,
        request: UpdateRolePermissionsRequest,
        _user=Depends(require_permission("role", "update")),
    ):
        grants = request.for_create()["rolePermissions"]
        record = policies.update_role_permissions(policy_id, role_id, grants)
        return success("Role permissions updated successfully", record)

    @router.delete("/access-policies/{policy_id}/roles/{role_id}")
    def remove_role(
        policy_id: str,
        role_id: str,
        _user=Depends(require_permission("role", "update")),
    ):
        record = policies.remove_role(policy_id, role_id)
        return success("Role removed from access policy", record)

    @router.get("/permissions/check")
    def check_permission(
        role_id: str = Query(alias="roleId"),
        resource: str = Query(),
        action: str = Query(),
        _user=Depends(require_permission("role", "read")),
    ):
        allowed = checker.is_allowed([role_id], resource, action)
        return success(
            "Permission check completed",
            {"roleId": role_id, "resource": resource, "action": action, "allowed": allowed},
        )

    return router
