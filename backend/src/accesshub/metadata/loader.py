"""Load entity, composite type and enum definitions from YAML files."""

import logging
from pathlib import Path
from typing import Any

import yaml

from accesshub.metadata.types import (
    CompositeField,
    CompositeType,
    EntityModel,
    EnumField,
    FieldDescriptor,
    RelationField,
    ScalarField,
    ScalarType,
)

logger = logging.getLogger(__name__)

DEFAULT_METADATA_PATH = Path(__file__).parent / "definitions"


class MetadataError(ValueError):
    """Raised when a definition file is malformed."""


class MetadataLoader:
    """Loads entity definitions from YAML files.

    Layout under ``metadata_path``::

        enums.yaml          # enum name -> list of values
        types/*.yaml        # composite (embedded) types
        entities/*.yaml     # entities
    """

    def __init__(self, metadata_path: Path | None = None):
        self.metadata_path = metadata_path or DEFAULT_METADATA_PATH
        self.entities: dict[str, EntityModel] = {}
        self.types: dict[str, CompositeType] = {}
        self.enums: dict[str, list[str]] = {}

    def load_all(self) -> None:
        """Load every definition file and check cross references."""
        enums_file = self.metadata_path / "enums.yaml"
        if enums_file.exists():
            data = self._read(enums_file) or {}
            self.enums = {name: [str(v) for v in values] for name, values in data.items()}

        for type_file in sorted((self.metadata_path / "types").glob("*.yaml")):
            composite = self._parse_type(self._read(type_file))
            self.types[composite.name] = composite

        for entity_file in sorted((self.metadata_path / "entities").glob("*.yaml")):
            entity = self._parse_entity(self._read(entity_file))
            self.entities[entity.name] = entity

        self._check_references()
        logger.debug(
            "Loaded %d entities, %d composite types, %d enums from %s",
            len(self.entities),
            len(self.types),
            len(self.enums),
            self.metadata_path,
        )

    def get_entity(self, name: str) -> EntityModel | None:
        return self.entities.get(name)

    def require_entity(self, name: str) -> EntityModel:
        entity = self.entities.get(name)
        if entity is None:
            raise KeyError(f"Unknown entity: {name}")
        return entity

    def get_type(self, name: str) -> CompositeType | None:
        return self.types.get(name)

    def list_entities(self) -> list[str]:
        return list(self.entities.keys())

    def redact(self, entity_name: str, record: dict[str, Any] | None) -> dict[str, Any] | None:
        """Return a copy of ``record`` without hidden fields, including in loaded relations."""
        if record is None:
            return None
        entity = self.entities.get(entity_name)
        if entity is None:
            return dict(record)

        result = {k: v for k, v in record.items() if k not in entity.hidden}
        for relation in entity.relations:
            value = result.get(relation.name)
            if isinstance(value, list):
                result[relation.name] = [self.redact(relation.entity, item) for item in value]
            elif isinstance(value, dict):
                result[relation.name] = self.redact(relation.entity, value)
        return result

    # ── Parsing ──────────────────────────────────────────────────────────

    def _read(self, path: Path) -> Any:
        with open(path) as f:
            return yaml.safe_load(f)

    def _parse_type(self, data: dict) -> CompositeType:
        if not data or "type" not in data:
            raise MetadataError("Composite type definition requires a 'type' key")
        name = data["type"]
        fields = {
            field_name: self._parse_field(field_name, spec or {}, owner=name)
            for field_name, spec in (data.get("fields") or {}).items()
        }
        return CompositeType(name=name, fields=fields)

    def _parse_entity(self, data: dict) -> EntityModel:
        if not data or "entity" not in data:
            raise MetadataError("Entity definition requires an 'entity' key")
        name = data["entity"]
        plural = data.get("pluralName", name[0].lower() + name[1:] + "s")
        fields = {
            field_name: self._parse_field(field_name, spec or {}, owner=name)
            for field_name, spec in (data.get("fields") or {}).items()
        }
        return EntityModel(
            name=name,
            display_name=data.get("displayName", name),
            plural_name=plural,
            data_key=data.get("dataKey", plural),
            fields=fields,
            search_fields=list(data.get("search") or []),
            soft_delete=bool(data.get("softDelete", True)),
            resource=data.get("resource"),
            unique=[tuple(key) for key in data.get("unique") or []],
            hidden=list(data.get("hidden") or []),
        )

    def _parse_field(self, name: str, spec: dict, owner: str) -> FieldDescriptor:
        is_list = bool(spec.get("list", False))

        if "relation" in spec:
            return RelationField(
                name=name,
                entity=spec["relation"],
                relation_name=spec.get("relationName", f"{owner}{name[0].upper()}{name[1:]}"),
                local_key=spec.get("localKey", "id"),
                foreign_key=spec.get("foreignKey", "id"),
                is_list=is_list,
            )
        if "composite" in spec:
            return CompositeField(name=name, type_name=spec["composite"], is_list=is_list)
        if "enum" in spec:
            return EnumField(name=name, enum_name=spec["enum"], is_list=is_list)

        type_name = spec.get("type", "String")
        try:
            scalar_type = ScalarType(type_name)
        except ValueError:
            raise MetadataError(f"{owner}.{name}: unknown scalar type '{type_name}'")
        return ScalarField(name=name, type=scalar_type, is_list=is_list)

    def _check_references(self) -> None:
        owners: list[tuple[str, dict[str, FieldDescriptor]]] = [
            (e.name, e.fields) for e in self.entities.values()
        ]
        owners += [(t.name, t.fields) for t in self.types.values()]

        for owner, fields in owners:
            for f in fields.values():
                if isinstance(f, RelationField) and f.entity not in self.entities:
                    raise MetadataError(f"{owner}.{f.name}: unknown entity '{f.entity}'")
                if isinstance(f, CompositeField) and f.type_name not in self.types:
                    raise MetadataError(f"{owner}.{f.name}: unknown composite type '{f.type_name}'")
                if isinstance(f, EnumField) and f.enum_name not in self.enums:
                    raise MetadataError(f"{owner}.{f.name}: unknown enum '{f.enum_name}'")
