"""Sparse field selection.

``build`` turns ``"userName,person.firstName"`` into the select tree
``{"id": True, "userName": True, "person": {"select": {"firstName": True}}}``.

Composite and Json fields are stored as a single value and can only be
selected whole. When a path reaches into one, the whole field is selected
and the requested sub-path is recorded so ``prune_composites`` can cut the
fetched value down afterwards.
"""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from typing import Any

from accesshub.metadata import EntityModel, MetadataLoader, RelationField

FIELD_TOKEN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_.]*$")


@dataclass(frozen=True)
class CompositePath:
    """A requested sub-path inside a composite value.

    ``field`` leads from the record root to the composite field
    (``("person", "contactInfo")``); ``sub_path`` is the part inside it
    (``("address", "city")``).
    """

    field: tuple[str, ...]
    sub_path: tuple[str, ...]


@dataclass
class SelectionPlan:
    tree: dict[str, Any] | None = None
    composite_paths: list[CompositePath] = field(default_factory=list)

    @property
    def needs_pruning(self) -> bool:
        return bool(self.composite_paths)


class SelectionBuilder:
    def __init__(self, metadata: MetadataLoader):
        self._metadata = metadata

    def build(self, entity: str, fields: str | None) -> SelectionPlan:
        """Build a select tree. No ``fields`` means the store's default selection."""
        if not fields:
            return SelectionPlan()

        tree: dict[str, Any] = {"id": True}
        partial: list[CompositePath] = []
        whole: set[tuple[str, ...]] = set()

        for token in fields.split(","):
            token = token.strip()
            if not FIELD_TOKEN.match(token):
                continue
            segments = token.split(".")
            if any(not s for s in segments):
                continue
            self._add(entity, tree, segments, partial, whole)

        # Selecting a relation or composite whole wins over any part of it
        paths = []
        for p in partial:
            if p.field in whole or _covered(tree, p.field) or p in paths:
                continue
            paths.append(p)
        return SelectionPlan(tree=tree, composite_paths=paths)

    def _add(
        self,
        entity: str,
        tree: dict[str, Any],
        segments: list[str],
        partial: list[CompositePath],
        whole: set[tuple[str, ...]],
    ) -> None:
        node = tree
        scope: EntityModel | None = self._metadata.get_entity(entity)
        last = len(segments) - 1

        for i, segment in enumerate(segments):
            descriptor = scope.get_field(segment) if scope is not None else None
            prefix = tuple(segments[: i + 1])

            if i == last:
                node[segment] = True
                if descriptor is not None and descriptor.is_blob:
                    whole.add(prefix)
                return

            if descriptor is not None and descriptor.is_blob:
                node[segment] = True
                partial.append(CompositePath(field=prefix, sub_path=tuple(segments[i + 1 :])))
                return

            if descriptor is not None and not isinstance(descriptor, RelationField):
                # Scalars have no sub-fields; select the value itself
                node[segment] = True
                return

            existing = node.get(segment)
            if existing is True:
                return
            if not isinstance(existing, dict):
                node[segment] = {"select": {}}
            node = node[segment]["select"]
            scope = (
                self._metadata.get_entity(descriptor.entity)
                if isinstance(descriptor, RelationField)
                else None
            )


def _covered(tree: dict[str, Any], field: tuple[str, ...]) -> bool:
    """Whether a relation on the way to ``field`` ended up selected whole."""
    node: Any = tree
    for segment in field[:-1]:
        if not isinstance(node, dict):
            return False
        value = node.get(segment)
        if value is True:
            return True
        node = value.get("select") if isinstance(value, dict) else None
    return False


def _prune_value(value: Any, sub_paths: list[tuple[str, ...]]) -> Any:
    """Keep only ``sub_paths`` of ``value``; lists are pruned item by item."""
    if isinstance(value, list):
        items = [_prune_value(item, sub_paths) for item in value]
        items = [item for item in items if item is not None]
        return items or None
    if not isinstance(value, dict):
        return None

    by_key: dict[str, list[tuple[str, ...]]] = {}
    for path in sub_paths:
        by_key.setdefault(path[0], []).append(path[1:])

    result: dict[str, Any] = {}
    for key, rests in by_key.items():
        if key not in value:
            continue
        if any(not rest for rest in rests):
            result[key] = value[key]
            continue
        pruned = _prune_value(value[key], rests)
        if pruned is not None:
            result[key] = pruned
    return result or None


def _prune_in(node: Any, parents: tuple[str, ...], name: str, sub_paths: list[tuple[str, ...]]) -> None:
    if isinstance(node, list):
        for item in node:
            _prune_in(item, parents, name, sub_paths)
        return
    if not isinstance(node, dict):
        return
    if parents:
        _prune_in(node.get(parents[0]), parents[1:], name, sub_paths)
        return
    if node.get(name) is not None:
        node[name] = _prune_value(node[name], sub_paths)


def prune_composites(records: list[dict[str, Any]], plan: SelectionPlan) -> list[dict[str, Any]]:
    """Cut composite values down to the requested sub-paths.

    Several paths into the same composite are merged. A composite in which
    none of the requested paths exist becomes None. Input records are not
    modified.
    """
    if not plan.needs_pruning:
        return records

    grouped: dict[tuple[str, ...], list[tuple[str, ...]]] = {}
    for p in plan.composite_paths:
        grouped.setdefault(p.field, []).append(p.sub_path)

    result = copy.deepcopy(records)
    for record in result:
        for field_path, sub_paths in grouped.items():
            _prune_in(record, field_path[:-1], field_path[-1], sub_paths)
    return result
