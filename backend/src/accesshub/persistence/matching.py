"""Evaluate where/select/orderBy trees against in-memory documents.

Both stores keep records as plain dicts and share this evaluator, so query
semantics are identical whichever backend holds the data. Relations are
resolved through a loader callable returning every record of an entity.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

from accesshub.metadata import (
    CompositeField,
    CompositeType,
    EntityModel,
    MetadataLoader,
    RelationField,
)

RecordLoader = Callable[[str], list[dict[str, Any]]]

SCALAR_OPERATORS = frozenset(
    {
        "equals",
        "not",
        "in",
        "notIn",
        "lt",
        "lte",
        "gt",
        "gte",
        "contains",
        "startsWith",
        "endsWith",
        "mode",
        "has",
        "hasSome",
        "hasEvery",
        "isEmpty",
    }
)
TO_ONE_OPERATORS = frozenset({"is", "isNot"})
TO_MANY_OPERATORS = frozenset({"some", "every", "none"})
LOGICAL_KEYS = frozenset({"AND", "OR", "NOT"})

Scope = EntityModel | CompositeType | None


def _as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _fold(value: Any, insensitive: bool) -> Any:
    if insensitive and isinstance(value, str):
        return value.casefold()
    return value


def _compare(left: Any, right: Any, op: str) -> bool:
    if left is None or right is None:
        return False
    try:
        if op == "lt":
            return left < right
        if op == "lte":
            return left <= right
        if op == "gt":
            return left > right
        return left >= right
    except TypeError:
        return False


class RecordEvaluator:
    """Matches, projects and sorts records of metadata-described entities."""

    def __init__(self, metadata: MetadataLoader, loader: RecordLoader):
        self._metadata = metadata
        self._load = loader

    # ── Matching ─────────────────────────────────────────────────────────

    def matches(self, entity: str, record: dict[str, Any], where: dict | None) -> bool:
        if not where:
            return True
        return self._match_node(self._metadata.get_entity(entity), record, where)

    def filter(
        self, entity: str, records: Iterable[dict[str, Any]], where: dict | None
    ) -> list[dict[str, Any]]:
        return [r for r in records if self.matches(entity, r, where)]

    def _match_node(self, scope: Scope, record: dict[str, Any], where: dict) -> bool:
        for key, condition in where.items():
            if key == "AND":
                if not all(self._match_node(scope, record, c) for c in _as_list(condition)):
                    return False
            elif key == "OR":
                if not any(self._match_node(scope, record, c) for c in _as_list(condition)):
                    return False
            elif key == "NOT":
                if any(self._match_node(scope, record, c) for c in _as_list(condition)):
                    return False
            elif not self._match_field(scope, record, key, condition):
                return False
        return True

    def _match_field(self, scope: Scope, record: dict[str, Any], name: str, condition: Any) -> bool:
        descriptor = scope.get_field(name) if scope is not None else None

        if isinstance(descriptor, RelationField):
            return self._match_relation(descriptor, record, condition)

        value = record.get(name) if isinstance(record, dict) else None
        if isinstance(descriptor, CompositeField):
            return self._match_composite(descriptor, value, condition)
        return self._match_scalar(value, condition)

    def _match_relation(self, field: RelationField, record: dict[str, Any], condition: Any) -> bool:
        target = self._metadata.get_entity(field.entity)

        if field.is_list:
            related = self._related_many(field, record)
            if not isinstance(condition, dict):
                return False
            return self._match_many(target, related, condition)

        related_one = self._related_one(field, record)
        return self._match_one(target, related_one, condition)

    def _match_composite(self, field: CompositeField, value: Any, condition: Any) -> bool:
        composite = self._metadata.get_type(field.type_name)

        if field.is_list:
            items = value if isinstance(value, list) else []
            if not isinstance(condition, dict):
                return False
            if "isEmpty" in condition:
                return (len(items) == 0) == bool(condition["isEmpty"])
            if "equals" in condition:
                return items == condition["equals"]
            return self._match_many(composite, items, condition)

        if isinstance(condition, dict) and "equals" in condition:
            return value == condition["equals"]
        return self._match_one(composite, value if isinstance(value, dict) else None, condition)

    def _match_many(self, scope: Scope, items: list[dict], condition: dict) -> bool:
        if not set(condition) & TO_MANY_OPERATORS:
            condition = {"some": condition}
        for op, sub in condition.items():
            sub = sub or {}
            if op == "some" and not any(self._match_node(scope, i, sub) for i in items):
                return False
            if op == "every" and not all(self._match_node(scope, i, sub) for i in items):
                return False
            if op == "none" and any(self._match_node(scope, i, sub) for i in items):
                return False
        return True

    def _match_one(self, scope: Scope, item: dict | None, condition: Any) -> bool:
        if condition is None:
            return item is None
        if not isinstance(condition, dict):
            return False
        if not set(condition) & TO_ONE_OPERATORS:
            condition = {"is": condition}
        for op, sub in condition.items():
            if op == "is":
                if sub is None:
                    if item is not None:
                        return False
                elif item is None or not self._match_node(scope, item, sub):
                    return False
            elif op == "isNot":
                if sub is None:
                    if item is None:
                        return False
                elif item is not None and self._match_node(scope, item, sub):
                    return False
        return True

    def _match_scalar(self, value: Any, condition: Any) -> bool:
        if isinstance(condition, dict) and condition and set(condition) <= SCALAR_OPERATORS:
            return self._apply_operators(value, condition)
        return self._equals(value, condition, insensitive=False)

    def _apply_operators(self, value: Any, ops: dict[str, Any]) -> bool:
        insensitive = ops.get("mode") == "insensitive"

        for op, operand in ops.items():
            if op == "mode":
                continue
            if op == "equals":
                ok = self._equals(value, operand, insensitive)
            elif op == "not":
                if isinstance(operand, dict) and operand and set(operand) <= SCALAR_OPERATORS:
                    ok = not self._apply_operators(value, operand)
                else:
                    ok = not self._equals(value, operand, insensitive)
            elif op == "in":
                ok = any(self._equals(value, o, insensitive) for o in _as_list(operand))
            elif op == "notIn":
                ok = not any(self._equals(value, o, insensitive) for o in _as_list(operand))
            elif op in ("lt", "lte", "gt", "gte"):
                ok = _compare(value, operand, op)
            elif op in ("contains", "startsWith", "endsWith"):
                ok = self._match_text(value, operand, op, insensitive)
            elif op == "has":
                ok = isinstance(value, list) and operand in value
            elif op == "hasSome":
                ok = isinstance(value, list) and any(o in value for o in _as_list(operand))
            elif op == "hasEvery":
                ok = isinstance(value, list) and all(o in value for o in _as_list(operand))
            else:  # isEmpty
                ok = isinstance(value, list) and (len(value) == 0) == bool(operand)
            if not ok:
                return False
        return True

    def _match_text(self, value: Any, operand: Any, op: str, insensitive: bool) -> bool:
        if not isinstance(value, str) or not isinstance(operand, str):
            return False
        haystack = _fold(value, insensitive)
        needle = _fold(operand, insensitive)
        if op == "contains":
            return needle in haystack
        if op == "startsWith":
            return haystack.startswith(needle)
        return haystack.endswith(needle)

    def _equals(self, value: Any, expected: Any, insensitive: bool) -> bool:
        if isinstance(value, datetime) and isinstance(expected, str):
            try:
                expected = datetime.fromisoformat(expected.replace("Z", "+00:00"))
            except ValueError:
                return False
        return _fold(value, insensitive) == _fold(expected, insensitive)

    # ── Relations ────────────────────────────────────────────────────────

    def _related_many(self, field: RelationField, record: dict[str, Any]) -> list[dict[str, Any]]:
        key = record.get(field.local_key)
        if key is None:
            return []
        return [r for r in self._load(field.entity) if r.get(field.foreign_key) == key]

    def _related_one(self, field: RelationField, record: dict[str, Any]) -> dict[str, Any] | None:
        key = record.get(field.local_key)
        if key is None:
            return None
        for r in self._load(field.entity):
            if r.get(field.foreign_key) == key:
                return r
        return None

    # ── Projection ───────────────────────────────────────────────────────

    def project(self, entity: str, record: dict[str, Any], select: dict | None) -> dict[str, Any]:
        """Shape ``record`` according to a select tree.

        Without a select tree every non-relation field is returned, with
        declared-but-unset fields reported as None.
        """
        model = self._metadata.get_entity(entity)

        if select is None:
            result = copy.deepcopy(record)
            if model is not None:
                for name in model.default_selection:
                    result.setdefault(name, None)
            return result

        result = {}
        for name, spec in select.items():
            if not spec:
                continue
            descriptor = model.get_field(name) if model is not None else None
            sub_select = spec.get("select") if isinstance(spec, dict) else None

            if isinstance(descriptor, RelationField):
                if descriptor.is_list:
                    result[name] = [
                        self.project(descriptor.entity, r, sub_select)
                        for r in self._related_many(descriptor, record)
                    ]
                else:
                    related = self._related_one(descriptor, record)
                    result[name] = (
                        self.project(descriptor.entity, related, sub_select)
                        if related is not None
                        else None
                    )
                continue

            value = record.get(name)
            if sub_select is not None and isinstance(value, dict):
                value = {k: v for k, v in value.items() if sub_select.get(k)}
            result[name] = copy.deepcopy(value)
        return result

    # ── Ordering ─────────────────────────────────────────────────────────

    def sort(
        self, entity: str, records: list[dict[str, Any]], order_by: Any
    ) -> list[dict[str, Any]]:
        keys = list(self._flatten_order(order_by))
        if not keys:
            return list(records)

        model = self._metadata.get_entity(entity)
        result = list(records)
        # Stable sorts applied from the least to the most significant key
        for path, direction in reversed(keys):
            reverse = direction == "desc"
            try:
                result.sort(key=lambda r: self._sort_key(model, r, path), reverse=reverse)
            except TypeError:
                result.sort(key=lambda r: str(self._sort_key(model, r, path)), reverse=reverse)
        return result

    def _flatten_order(self, order_by: Any, prefix: tuple[str, ...] = ()):
        for item in _as_list(order_by):
            if not isinstance(item, dict):
                continue
            for name, direction in item.items():
                if isinstance(direction, dict):
                    yield from self._flatten_order(direction, prefix + (name,))
                else:
                    yield prefix + (name,), direction

    def _sort_key(self, model: Scope, record: dict[str, Any] | None, path: tuple[str, ...]):
        current: Any = record
        scope = model
        for segment in path:
            if not isinstance(current, dict):
                current = None
                break
            descriptor = scope.get_field(segment) if scope is not None else None
            if isinstance(descriptor, RelationField) and not descriptor.is_list:
                current = self._related_one(descriptor, current)
                scope = self._metadata.get_entity(descriptor.entity)
            elif isinstance(descriptor, CompositeField):
                current = current.get(segment)
                scope = self._metadata.get_type(descriptor.type_name)
            else:
                current = current.get(segment)
                scope = None

        if current is None:
            return (0, "")
        if isinstance(current, (dict, list)):
            return (2, str(current))
        return (1, current)
