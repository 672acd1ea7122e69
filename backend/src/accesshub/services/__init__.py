"""Entity services used by the API routers."""

from accesshub.services.access import AccessPolicyService, PermissionService
from accesshub.services.accounts import OrganizationService, UserService
from accesshub.services.entities import CreateResult, EntityService

__all__ = [
    "AccessPolicyService",
    "PermissionService",
    "OrganizationService",
    "UserService",
    "CreateResult",
    "EntityService",
]
