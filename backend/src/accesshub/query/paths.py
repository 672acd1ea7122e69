"""Resolve dotted field paths against entity metadata."""

from collections.abc import Sequence

from accesshub.metadata import (
    CompositeField,
    CompositeType,
    EntityModel,
    FieldDescriptor,
    MetadataLoader,
    RelationField,
)


class PathResolver:
    """Walks a dotted path segment by segment.

    Relations continue resolution in the related entity; composites continue
    in the composite type. Scalars and enums end the walk.
    """

    def __init__(self, metadata: MetadataLoader):
        self._metadata = metadata

    def resolve(self, entity: str, path: str | Sequence[str]) -> list[FieldDescriptor] | None:
        """Return the descriptor chain for ``path`` or None if any segment is unknown."""
        segments = path.split(".") if isinstance(path, str) else list(path)
        if not segments or any(not s for s in segments):
            return None

        scope: EntityModel | CompositeType | None = self._metadata.get_entity(entity)
        chain: list[FieldDescriptor] = []
        for segment in segments:
            if scope is None:
                return None
            descriptor = scope.get_field(segment)
            if descriptor is None:
                return None
            chain.append(descriptor)

            if isinstance(descriptor, RelationField):
                scope = self._metadata.get_entity(descriptor.entity)
            elif isinstance(descriptor, CompositeField):
                scope = self._metadata.get_type(descriptor.type_name)
            else:
                scope = None
        return chain
