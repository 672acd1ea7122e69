"""Compile list-endpoint filters into store where trees.

Two input forms are accepted:

* the flat string ``status:active,person.firstName:Ann`` where repeated
  keys are ORed and distinct keys are ANDed;
* a list of filter objects. A list made only of ``{"key": ..., "value": ...}``
  pairs behaves like the flat form; otherwise each object is an AND of its
  entries and the objects are ORed together.

Dotted keys are resolved through entity metadata. A relation segment wraps
the remaining condition in ``some`` (to-many) or ``is`` (to-one); a
composite segment wraps it in ``is`` (single value) or ``some`` (list).
Paths that do not resolve to a scalar or enum leaf are dropped.
"""

from __future__ import annotations

import logging
from typing import Any

from accesshub.metadata import CompositeField, FieldDescriptor, MetadataLoader, RelationField
from accesshub.query.coercion import coerce_value
from accesshub.query.paths import PathResolver

Where = dict[str, Any]


def parse_flat_filter(text: str) -> list[tuple[str, str]]:
    """Split ``a:1,b.c:2`` into key/value pairs. Entries without ``:`` are skipped."""
    pairs = []
    for entry in text.split(","):
        key, sep, value = entry.partition(":")
        key = key.strip()
        if not sep or not key:
            continue
        pairs.append((key, value.strip()))
    return pairs


def combine(conditions: list[Where], operator: str) -> Where:
    """Join non-empty conditions; a single condition is returned unwrapped."""
    parts = [c for c in conditions if c]
    if not parts:
        return {}
    if len(parts) == 1:
        return parts[0]
    return {operator: parts}


def _is_pair(item: dict[str, Any]) -> bool:
    return set(item) == {"key", "value"} and isinstance(item.get("key"), str)


class FilterCompiler:
    def __init__(
        self,
        metadata: MetadataLoader,
        logger: logging.Logger | None = None,
        warn_dropped: bool = True,
    ):
        self._metadata = metadata
        self._paths = PathResolver(metadata)
        self._logger = logger or logging.getLogger(__name__)
        self._warn_dropped = warn_dropped

    def compile(self, entity: str, filter: str | list[dict[str, Any]] | None) -> Where:
        if not filter:
            return {}
        if isinstance(filter, str):
            return self.compile_pairs(entity, parse_flat_filter(filter))

        objects = [item for item in filter if isinstance(item, dict)]
        if objects and all(_is_pair(item) for item in objects):
            return self.compile_pairs(entity, [(item["key"], item["value"]) for item in objects])

        groups = [self.compile_pairs(entity, list(item.items())) for item in objects]
        return combine(groups, "OR")

    def compile_pairs(self, entity: str, pairs: list[tuple[str, Any]]) -> Where:
        """AND across distinct keys, OR across repeated values of one key."""
        values_by_key: dict[str, list[Any]] = {}
        for key, value in pairs:
            values_by_key.setdefault(key, []).append(value)

        groups = []
        for key, values in values_by_key.items():
            conditions = [self.condition(entity, key, v) for v in values]
            groups.append(combine(conditions, "OR"))
        return combine(groups, "AND")

    def condition(self, entity: str, path: str, value: Any) -> Where:
        """Build the condition for one dotted path, or ``{}`` if it cannot apply."""
        chain = self._paths.resolve(entity, path)
        if chain is None:
            self._dropped(entity, path, "unknown field")
            return {}

        leaf = chain[-1]
        if isinstance(leaf, (RelationField, CompositeField)):
            self._dropped(entity, path, f"'{leaf.name}' is not a scalar or enum field")
            return {}

        try:
            coerced = coerce_value(leaf, value)
        except (TypeError, ValueError):
            self._dropped(entity, path, f"invalid value {value!r}")
            return {}

        condition: Where = {leaf.name: {"has": coerced} if leaf.is_list else coerced}
        return self._wrap(chain[:-1], condition)

    def search(self, entity: str, query: str | None) -> Where:
        """OR of case-insensitive substring matches over the entity's search fields."""
        model = self._metadata.get_entity(entity)
        if not query or model is None:
            return {}

        conditions = []
        for path in model.search_fields:
            chain = self._paths.resolve(entity, path)
            if chain is None or chain[-1].kind != "scalar":
                continue
            leaf = {chain[-1].name: {"contains": query, "mode": "insensitive"}}
            conditions.append(self._wrap(chain[:-1], leaf))
        return combine(conditions, "OR")

    def build_where(
        self,
        entity: str,
        base: Where | None = None,
        query: str | None = None,
        filter: str | list[dict[str, Any]] | None = None,
    ) -> Where:
        """AND together the base condition, free-text search and the filter."""
        return combine(
            [base or {}, self.search(entity, query), self.compile(entity, filter)],
            "AND",
        )

    def _wrap(self, parents: list[FieldDescriptor], condition: Where) -> Where:
        for descriptor in reversed(parents):
            wrapper = "some" if descriptor.is_list else "is"
            condition = {descriptor.name: {wrapper: condition}}
        return condition

    def _dropped(self, entity: str, path: str, reason: str) -> None:
        if self._warn_dropped:
            self._logger.warning("Ignoring filter %s.%s: %s", entity, path, reason)
