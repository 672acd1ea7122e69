"""Field descriptors and entity models.

A field is exactly one of four kinds. Object-valued fields are split into
relations (stored as separate records, joined through keys) and composites
(embedded values stored inline in the parent record).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ScalarType(str, Enum):
    STRING = "String"
    INT = "Int"
    FLOAT = "Float"
    BOOLEAN = "Boolean"
    DATETIME = "DateTime"
    JSON = "Json"


@dataclass(frozen=True)
class ScalarField:
    name: str
    type: ScalarType
    is_list: bool = False

    kind = "scalar"

    @property
    def is_blob(self) -> bool:
        """Json fields cannot be partially selected by the store."""
        return self.type is ScalarType.JSON


@dataclass(frozen=True)
class EnumField:
    name: str
    enum_name: str
    is_list: bool = False

    kind = "enum"
    is_blob = False


@dataclass(frozen=True)
class RelationField:
    """Reference to records of another entity.

    ``local_key`` on this record is matched against ``foreign_key`` on the
    related records. For a to-one relation that is usually
    ``personId -> id``; for a to-many one ``id -> userId``.
    """

    name: str
    entity: str
    relation_name: str
    local_key: str
    foreign_key: str
    is_list: bool = False

    kind = "relation"
    is_blob = False


@dataclass(frozen=True)
class CompositeField:
    """Embedded value whose shape is described by a composite type."""

    name: str
    type_name: str
    is_list: bool = False

    kind = "composite"
    is_blob = True


FieldDescriptor = ScalarField | EnumField | RelationField | CompositeField


@dataclass
class CompositeType:
    name: str
    fields: dict[str, FieldDescriptor] = field(default_factory=dict)

    def get_field(self, name: str) -> FieldDescriptor | None:
        return self.fields.get(name)


@dataclass
class EntityModel:
    name: str
    display_name: str
    plural_name: str
    data_key: str
    fields: dict[str, FieldDescriptor] = field(default_factory=dict)
    search_fields: list[str] = field(default_factory=list)
    soft_delete: bool = True
    resource: str | None = None  # authorization resource guarding the entity
    unique: list[tuple[str, ...]] = field(default_factory=list)
    hidden: list[str] = field(default_factory=list)  # never returned to clients

    def get_field(self, name: str) -> FieldDescriptor | None:
        return self.fields.get(name)

    @property
    def relations(self) -> list[RelationField]:
        return [f for f in self.fields.values() if isinstance(f, RelationField)]

    @property
    def default_selection(self) -> list[str]:
        """Fields returned when no selection is requested (everything but relations)."""
        return [name for name, f in self.fields.items() if not isinstance(f, RelationField)]

    @property
    def table_name(self) -> str:
        result = []
        for i, char in enumerate(self.name):
            if char.isupper() and i > 0:
                result.append("_")
            result.append(char.lower())
        return "".join(result)
