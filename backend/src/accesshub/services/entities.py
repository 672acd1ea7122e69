"""Generic CRUD over metadata-described entities."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from accesshub.errors import ConflictError, FieldError, NotFoundError
from accesshub.metadata import EntityModel, MetadataLoader, RelationField
from accesshub.persistence import DocumentStore
from accesshub.persistence.base import utcnow
from accesshub.query import (
    ListQueryExecutor,
    ListResult,
    QueryRequest,
    SelectionBuilder,
    prune_composites,
)


@dataclass
class CreateResult:
    record: dict[str, Any]
    created: bool  # False when an existing record with the same natural key was returned


class EntityService:
    """List/get/create/update/delete for one entity.

    Soft-deletable entities are never returned once ``deletedAt`` is set.
    Creates are idempotent on the entity's natural keys: posting a record
    whose key matches a live record returns that record instead.
    """

    def __init__(
        self,
        entity: str,
        store: DocumentStore,
        metadata: MetadataLoader,
        executor: ListQueryExecutor,
        selection: SelectionBuilder,
        logger: logging.Logger | None = None,
    ):
        self.entity_name = entity
        self.store = store
        self.metadata = metadata
        self.executor = executor
        self.selection = selection
        self.logger = logger or logging.getLogger(__name__)

    @property
    def entity(self) -> EntityModel:
        return self.metadata.require_entity(self.entity_name)

    def live_where(self, **conditions: Any) -> dict[str, Any]:
        if self.entity.soft_delete:
            conditions["deletedAt"] = None
        return conditions

    # ── Reads ────────────────────────────────────────────────────────────

    def list(self, request: QueryRequest) -> ListResult:
        return self.executor.execute(self.entity_name, request)

    def get(self, id: str, fields: str | None = None) -> dict[str, Any]:
        plan = self.selection.build(self.entity_name, fields)
        record = self.store.find_first(self.entity_name, where=self.live_where(id=id), select=plan.tree)
        if record is None:
            raise NotFoundError(f"{self.entity.display_name} not found")
        return self.present(prune_composites([record], plan)[0])

    def present(self, record: dict[str, Any]) -> dict[str, Any]:
        return self.metadata.redact(self.entity_name, record)

    # ── Writes ───────────────────────────────────────────────────────────

    def create(self, data: dict[str, Any]) -> CreateResult:
        self.check_references(data)
        existing = self.find_by_natural_key(data)
        if existing is not None:
            self.logger.info("Existing %s %s returned for create", self.entity_name, existing["id"])
            return CreateResult(self.present(existing), created=False)

        record = self.store.create(self.entity_name, data)
        self.logger.info("Created %s %s", self.entity_name, record["id"])
        return CreateResult(self.present(record), created=True)

    def update(self, id: str, data: dict[str, Any]) -> dict[str, Any]:
        self.require(id)
        self.check_unique(data, exclude_id=id)
        self.check_references(data)
        record = self.store.update(self.entity_name, id, data)
        if record is None:
            raise NotFoundError(f"{self.entity.display_name} not found")
        self.logger.info("Updated %s %s", self.entity_name, id)
        return self.present(record)

    def delete(self, id: str) -> dict[str, Any]:
        """Soft delete where supported, otherwise remove the record."""
        record = self.require(id)
        if self.entity.soft_delete:
            record = self.store.update(self.entity_name, id, {"deletedAt": utcnow()})
        else:
            self.store.delete(self.entity_name, id)
        self.logger.info("Deleted %s %s", self.entity_name, id)
        return self.present(record)

    # ── Checks ───────────────────────────────────────────────────────────

    def require(self, id: str) -> dict[str, Any]:
        record = self.store.find_first(self.entity_name, where=self.live_where(id=id))
        if record is None:
            raise NotFoundError(f"{self.entity.display_name} not found")
        return record

    def find_by_natural_key(self, data: dict[str, Any]) -> dict[str, Any] | None:
        """Return the record sharing a unique key with ``data``.

        Raises:
            ConflictError: if that record is soft-deleted (the key stays taken)
        """
        for key in self.entity.unique:
            if any(data.get(f) is None for f in key):
                continue
            existing = self.store.find_first(self.entity_name, where={f: data[f] for f in key})
            if existing is None:
                continue
            if existing.get("deletedAt") is not None:
                raise ConflictError(
                    f"{self.entity.display_name} with this {', '.join(key)} was deleted",
                    [FieldError(f, "Value is already taken") for f in key],
                )
            return existing
        return None

    def check_unique(self, data: dict[str, Any], exclude_id: str) -> None:
        """Raise ConflictError if ``data`` would collide with another record's unique key."""
        if not any(f in data for key in self.entity.unique for f in key):
            return
        current = self.store.find_unique(self.entity_name, exclude_id) or {}
        merged = {**current, **data}
        for key in self.entity.unique:
            if not any(f in data for f in key) or any(merged.get(f) is None for f in key):
                continue
            where = {"AND": [{f: merged[f] for f in key}, {"NOT": {"id": exclude_id}}]}
            if self.store.count(self.entity_name, where=where) > 0:
                raise ConflictError(
                    f"{self.entity.display_name} with this {', '.join(key)} already exists",
                    [FieldError(f, "Value is already taken") for f in key],
                )

    def check_references(self, data: dict[str, Any]) -> None:
        """Every to-one key in ``data`` must point at a live record."""
        for relation in self.entity.relations:
            if relation.is_list or relation.foreign_key != "id":
                continue
            target_id = data.get(relation.local_key)
            if target_id is None:
                continue
            self._require_related(relation, target_id)

    def _require_related(self, relation: RelationField, target_id: str) -> None:
        target = self.metadata.require_entity(relation.entity)
        where: dict[str, Any] = {"id": target_id}
        if target.soft_delete:
            where["deletedAt"] = None
        if self.store.find_first(relation.entity, where=where, select={"id": True}) is None:
            raise NotFoundError(f"{target.display_name} not found")
