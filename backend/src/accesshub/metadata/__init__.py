"""Entity metadata: field descriptors loaded from YAML definitions."""

from accesshub.metadata.loader import DEFAULT_METADATA_PATH, MetadataError, MetadataLoader
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

__all__ = [
    "DEFAULT_METADATA_PATH",
    "MetadataError",
    "MetadataLoader",
    "CompositeField",
    "CompositeType",
    "EntityModel",
    "EnumField",
    "FieldDescriptor",
    "RelationField",
    "ScalarField",
    "ScalarType",
]
