"""Translate where/orderBy trees into SQLAlchemy expressions over JSON documents.

Only conditions whose SQL result is identical to the shared evaluator's are
translated: scalar and enum leaves, composites, and the logical keys around
them. Anything else (relation filters, list operators, case-insensitive
text, DateTime ranges) is left to the evaluator, which still runs over the
rows the database returns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import sqlalchemy as sa

from accesshub.metadata import (
    CompositeField,
    EntityModel,
    EnumField,
    MetadataLoader,
    ScalarField,
    ScalarType,
)
from accesshub.persistence.matching import SCALAR_OPERATORS, TO_ONE_OPERATORS, Scope, _as_list

_COMPARISONS = {
    "lt": lambda e, v: e < v,
    "lte": lambda e, v: e <= v,
    "gt": lambda e, v: e > v,
    "gte": lambda e, v: e >= v,
}
_NUMBERS = (ScalarType.INT, ScalarType.FLOAT)


class _Unsupported(Exception):
    """Raised internally when a condition must be left to the evaluator."""


@dataclass
class SQLWhere:
    """The translatable part of a where tree.

    ``exact`` is true when ``clause`` alone selects exactly the matching
    rows, so counts and paging may run in the database.
    """

    clauses: list[Any] = field(default_factory=list)
    exact: bool = True

    @property
    def clause(self) -> Any:
        return sa.and_(*self.clauses) if self.clauses else None


class SQLWhereCompiler:
    def __init__(self, metadata: MetadataLoader, dialect: str):
        self._metadata = metadata
        self._dialect = dialect

    # ── Where ────────────────────────────────────────────────────────────

    def compile(self, entity: str, table: sa.Table, where: dict | None) -> SQLWhere:
        """Translate each top-level conjunct of ``where`` that can be."""
        result = SQLWhere()
        model = self._metadata.get_entity(entity)
        for conjunct in _conjuncts(where):
            try:
                result.clauses.append(self._node(model, table.c.document, (), conjunct))
            except _Unsupported:
                result.exact = False
        return result

    def _node(self, scope: Scope, doc: Any, prefix: tuple[str, ...], where: Any) -> Any:
        if not isinstance(where, dict):
            raise _Unsupported
        parts = []
        for key, condition in where.items():
            if key == "AND":
                parts.append(sa.and_(sa.true(), *(self._node(scope, doc, prefix, c) for c in _as_list(condition))))
            elif key == "OR":
                parts.append(sa.or_(sa.false(), *(self._node(scope, doc, prefix, c) for c in _as_list(condition))))
            elif key == "NOT":
                parts.append(
                    sa.not_(sa.or_(sa.false(), *(self._node(scope, doc, prefix, c) for c in _as_list(condition))))
                )
            else:
                parts.append(self._field(scope, doc, prefix, key, condition))
        return sa.and_(sa.true(), *parts)

    def _field(self, scope: Scope, doc: Any, prefix: tuple[str, ...], name: str, condition: Any) -> Any:
        descriptor = scope.get_field(name) if scope is not None else None
        path = prefix + (name,)
        if isinstance(descriptor, CompositeField) and not descriptor.is_list:
            return self._composite(descriptor, doc, path, condition)
        if isinstance(descriptor, (ScalarField, EnumField)) and not descriptor.is_list:
            kind = descriptor.type if isinstance(descriptor, ScalarField) else ScalarType.STRING
            return self._scalar(kind, _element(doc, path), condition)
        raise _Unsupported

    def _composite(self, descriptor: CompositeField, doc: Any, path: tuple[str, ...], condition: Any) -> Any:
        present = _element(doc, path).as_string().is_not(None)
        if condition is None:
            return sa.not_(present)
        if not isinstance(condition, dict) or "equals" in condition:
            raise _Unsupported
        if not set(condition) & TO_ONE_OPERATORS:
            condition = {"is": condition}

        composite = self._metadata.get_type(descriptor.type_name)
        parts = []
        for op, sub in condition.items():
            if op not in TO_ONE_OPERATORS:
                raise _Unsupported
            if sub is None:
                parts.append(sa.not_(present) if op == "is" else present)
                continue
            matched = sa.and_(present, self._node(composite, doc, path, sub))
            parts.append(matched if op == "is" else sa.not_(matched))
        return sa.and_(sa.true(), *parts)

    def _scalar(self, kind: ScalarType, element: Any, condition: Any) -> Any:
        if isinstance(condition, dict) and condition and set(condition) <= SCALAR_OPERATORS:
            return self._operators(kind, element, condition)
        return self._equals(kind, element, condition)

    def _operators(self, kind: ScalarType, element: Any, ops: dict[str, Any]) -> Any:
        if ops.get("mode", "default") != "default":
            raise _Unsupported

        parts = []
        for op, operand in ops.items():
            if op == "mode":
                continue
            if op == "equals":
                parts.append(self._equals(kind, element, operand))
            elif op == "not":
                if isinstance(operand, dict) and operand and set(operand) <= SCALAR_OPERATORS:
                    parts.append(sa.not_(self._operators(kind, element, operand)))
                else:
                    parts.append(sa.not_(self._equals(kind, element, operand)))
            elif op in ("in", "notIn"):
                values = _as_list(operand)
                if any(not _fits(kind, v) for v in values):
                    raise _Unsupported
                value = _typed(kind, element)
                found = sa.and_(value.is_not(None), value.in_(values))
                parts.append(found if op == "in" else sa.not_(found))
            elif op in _COMPARISONS:
                if kind not in _NUMBERS or not _fits(kind, operand):
                    raise _Unsupported
                value = _typed(kind, element)
                parts.append(sa.and_(value.is_not(None), _COMPARISONS[op](value, operand)))
            elif op in ("contains", "startsWith", "endsWith"):
                parts.append(self._text(kind, element, op, operand))
            else:
                raise _Unsupported
        return sa.and_(sa.true(), *parts)

    def _equals(self, kind: ScalarType, element: Any, expected: Any) -> Any:
        if expected is None:
            return element.as_string().is_(None)
        if not _fits(kind, expected):
            raise _Unsupported
        value = _typed(kind, element)
        return sa.and_(value.is_not(None), value == expected)

    def _text(self, kind: ScalarType, element: Any, op: str, operand: Any) -> Any:
        if kind is not ScalarType.STRING or not isinstance(operand, str):
            raise _Unsupported
        value = element.as_string()
        # LIKE ignores case on SQLite, so match by position instead
        if op == "endsWith":
            found = sa.and_(
                sa.func.length(value) >= len(operand),
                sa.func.substr(value, sa.func.length(value) - len(operand) + 1) == operand,
            )
        else:
            position = sa.func.instr(value, operand) if self._dialect == "sqlite" else sa.func.strpos(value, operand)
            found = position == 1 if op == "startsWith" else position > 0
        return sa.and_(value.is_not(None), found)

    # ── Ordering ─────────────────────────────────────────────────────────

    def order_by(self, entity: str, table: sa.Table, order_by: Any) -> list[Any] | None:
        """ORDER BY clauses for plain scalar keys, or None when any key is not one.

        Missing values sort first ascending and last descending.
        """
        model = self._metadata.get_entity(entity)
        if model is None:
            return None
        clauses = []
        for item in _as_list(order_by):
            if not isinstance(item, dict):
                continue
            for name, direction in item.items():
                kind = _sortable(model, name)
                if kind is None or direction not in ("asc", "desc"):
                    return None
                value = _typed(kind, table.c.document[name])
                if kind is ScalarType.STRING and self._dialect == "postgresql":
                    value = value.collate("C")
                clauses.append(value.asc().nulls_first() if direction == "asc" else value.desc().nulls_last())
        return clauses


def _conjuncts(where: dict | None) -> list[dict]:
    if not where:
        return []
    result: list[dict] = []
    for key, condition in where.items():
        if key == "AND" and all(isinstance(c, dict) for c in _as_list(condition)):
            for c in _as_list(condition):
                result.extend(_conjuncts(c))
        else:
            result.append({key: condition})
    return result


def _element(doc: Any, path: tuple[str, ...]) -> Any:
    return doc[path[0]] if len(path) == 1 else doc[path]


def _fits(kind: ScalarType, value: Any) -> bool:
    if kind is ScalarType.STRING:
        return isinstance(value, str)
    if kind in _NUMBERS:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if kind is ScalarType.BOOLEAN:
        return isinstance(value, bool)
    return False


def _typed(kind: ScalarType, element: Any) -> Any:
    if kind in _NUMBERS:
        return element.as_float()
    if kind is ScalarType.BOOLEAN:
        return element.as_boolean()
    return element.as_string()


def _sortable(model: EntityModel, name: str) -> ScalarType | None:
    descriptor = model.get_field(name)
    if isinstance(descriptor, EnumField) and not descriptor.is_list:
        return ScalarType.STRING
    if isinstance(descriptor, ScalarField) and not descriptor.is_list:
        if descriptor.type in (ScalarType.STRING, ScalarType.BOOLEAN) or descriptor.type in _NUMBERS:
            return descriptor.type
    return None
