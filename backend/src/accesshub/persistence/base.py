"""Query and write logic shared by the document store backends.

Subclasses provide row-level primitives (read all rows, insert, replace,
remove) and a transaction boundary; everything else lives here.
"""

from __future__ import annotations

import secrets
from contextlib import AbstractContextManager
from datetime import datetime, timezone
from typing import Any

from accesshub.errors import UniqueConstraintError
from accesshub.metadata import EntityModel, MetadataLoader, RelationField
from accesshub.persistence.matching import RecordEvaluator


def new_object_id() -> str:
    """Return a 24 character hex identifier."""
    return secrets.token_hex(12)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseDocumentStore:
    def __init__(self, metadata: MetadataLoader):
        self.metadata = metadata

    # ── Primitives ───────────────────────────────────────────────────────

    def _rows(self, entity: str) -> list[dict[str, Any]]:
        raise NotImplementedError

    def _get(self, entity: str, id: str) -> dict[str, Any] | None:
        for row in self._rows(entity):
            if row.get("id") == id:
                return row
        return None

    def _insert(self, entity: str, document: dict[str, Any]) -> None:
        raise NotImplementedError

    def _replace(self, entity: str, id: str, document: dict[str, Any]) -> None:
        raise NotImplementedError

    def _remove(self, entity: str, id: str) -> None:
        raise NotImplementedError

    def transaction(self) -> AbstractContextManager[None]:
        raise NotImplementedError

    def close(self) -> None:
        pass

    def _evaluator(self) -> RecordEvaluator:
        return RecordEvaluator(self.metadata, self._rows)

    # ── Reads ────────────────────────────────────────────────────────────

    def find_many(
        self,
        entity: str,
        where: dict | None = None,
        select: dict | None = None,
        order_by: Any = None,
        skip: int = 0,
        take: int | None = None,
    ) -> list[dict[str, Any]]:
        evaluator = self._evaluator()
        rows = evaluator.filter(entity, self._rows(entity), where)
        rows = evaluator.sort(entity, rows, order_by)
        end = skip + take if take is not None else None
        return [evaluator.project(entity, r, select) for r in rows[skip:end]]

    def find_first(
        self,
        entity: str,
        where: dict | None = None,
        select: dict | None = None,
        order_by: Any = None,
    ) -> dict[str, Any] | None:
        found = self.find_many(entity, where=where, select=select, order_by=order_by, take=1)
        return found[0] if found else None

    def find_unique(self, entity: str, id: str, select: dict | None = None) -> dict[str, Any] | None:
        row = self._get(entity, id)
        if row is None:
            return None
        return self._evaluator().project(entity, row, select)

    def count(self, entity: str, where: dict | None = None) -> int:
        return len(self._evaluator().filter(entity, self._rows(entity), where))

    # ── Writes ───────────────────────────────────────────────────────────

    def create(self, entity: str, data: dict[str, Any]) -> dict[str, Any]:
        model = self.metadata.require_entity(entity)
        document = self._clean(model, data)
        document["id"] = data.get("id") or new_object_id()

        now = utcnow()
        if "createdAt" in model.fields:
            document.setdefault("createdAt", now)
        if "updatedAt" in model.fields:
            document["updatedAt"] = now

        with self.transaction():
            self._check_unique(model, document)
            self._insert(entity, document)
        return self._evaluator().project(entity, document, None)

    def update(self, entity: str, id: str, data: dict[str, Any]) -> dict[str, Any] | None:
        model = self.metadata.require_entity(entity)
        with self.transaction():
            current = self._get(entity, id)
            if current is None:
                return None
            document = {**current, **self._clean(model, data)}
            document["id"] = id
            if "updatedAt" in model.fields:
                document["updatedAt"] = utcnow()
            self._check_unique(model, document)
            self._replace(entity, id, document)
        return self._evaluator().project(entity, document, None)

    def update_many(self, entity: str, where: dict, data: dict[str, Any]) -> int:
        with self.transaction():
            ids = [r["id"] for r in self.find_many(entity, where=where, select={"id": True})]
            for id in ids:
                self.update(entity, id, data)
        return len(ids)

    def delete(self, entity: str, id: str) -> bool:
        with self.transaction():
            if self._get(entity, id) is None:
                return False
            self._remove(entity, id)
        return True

    def delete_many(self, entity: str, where: dict) -> int:
        with self.transaction():
            ids = [r["id"] for r in self.find_many(entity, where=where, select={"id": True})]
            for id in ids:
                self._remove(entity, id)
        return len(ids)

    # ── Helpers ──────────────────────────────────────────────────────────

    def _clean(self, model: EntityModel, data: dict[str, Any]) -> dict[str, Any]:
        """Drop relation fields; they are expressed through their keys."""
        return {
            k: v
            for k, v in data.items()
            if not isinstance(model.get_field(k), RelationField) and k != "id"
        }

    def _check_unique(self, model: EntityModel, document: dict[str, Any]) -> None:
        for key in model.unique:
            values = [document.get(f) for f in key]
            if any(v is None for v in values):
                continue
            for row in self._rows(model.name):
                if row.get("id") == document.get("id"):
                    continue
                if [row.get(f) for f in key] == values:
                    raise UniqueConstraintError(model.name, key)
