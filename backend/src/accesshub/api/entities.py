"""CRUD routers for the entity services."""

from typing import Any

from fastapi import APIRouter, Depends, Request
from starlette.datastructures import QueryParams

from accesshub.api.envelope import success
from accesshub.auth.dependencies import require_permission
from accesshub.query import parse_query_params
from accesshub.services import EntityService


def query_params_to_dict(params: QueryParams) -> dict[str, Any]:
    """Flatten query params; repeated keys become lists so validation can reject them."""
    result: dict[str, Any] = {}
    for key in params.keys():
        values = params.getlist(key)
        result[key] = values[0] if len(values) == 1 else values
    return result


def create_entity_router(
    path: str,
    service: EntityService,
    create_model: type,
    update_model: type,
) -> APIRouter:
    """Create list/get/create/update/delete routes under ``/api/{path}``.

    Each route requires the matching action on the entity's authorization
    resource.
    """
    router = APIRouter(prefix=f"/api/{path}", tags=[path])
    entity = service.entity
    name = entity.display_name
    resource = entity.resource or "module"

    @router.get("")
    def list_records(request: Request, _user=Depends(require_permission(resource, "read"))):
        query = parse_query_params(query_params_to_dict(request.query_params))
        result = service.list(query)
        return success(result.message, result.data)

    @router.get("/{id}")
    def get_record(
        id: str,
        fields: str | None = None,
        _user=Depends(require_permission(resource, "read")),
    ):
        return success(f"{name} retrieved successfully", service.get(id, fields))

    @router.post("", status_code=201)
    def create_record(payload: create_model, _user=Depends(require_permission(resource, "create"))):
        result = service.create(payload.for_create())
        if not result.created:
            return success(f"Existing {name.lower()} found", result.record)
        return success(f"{name} created successfully", result.record, status_code=201)

    @router.put("/{id}")
    def update_record(
        id: str,
        payload: update_model,
        _user=Depends(require_permission(resource, "update")),
    ):
        return success(f"{name} updated successfully", service.update(id, payload.for_update()))

    @router.delete("/{id}")
    def delete_record(id: str, _user=Depends(require_permission(resource, "delete"))):
        return success(f"{name} deleted successfully", service.delete(id))

    return router
