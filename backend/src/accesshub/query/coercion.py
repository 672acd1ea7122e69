"""Coerce raw filter values to the type declared by a field descriptor."""

import json
from datetime import datetime, timezone
from typing import Any

from accesshub.metadata import EnumField, FieldDescriptor, ScalarField, ScalarType

TRUE_TOKENS = frozenset({"true", "1", "yes"})


def coerce_boolean(value: Any) -> bool:
    """``true``/``1``/``yes`` (any case) and native True are true; anything else is false."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in TRUE_TOKENS
    if isinstance(value, int):
        return value == 1
    return False


def coerce_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    else:
        raise ValueError(f"Cannot interpret {value!r} as a date")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _coerce_json(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except ValueError:
        return value


def coerce_value(descriptor: FieldDescriptor, value: Any) -> Any:
    """Coerce ``value`` for comparison against the field.

    Raises:
        ValueError: if the value cannot represent the field's type
        TypeError: for relation and composite fields, which hold no single value
    """
    if isinstance(descriptor, EnumField):
        return value
    if not isinstance(descriptor, ScalarField):
        raise TypeError(f"Field '{descriptor.name}' is not a scalar or enum")

    kind = descriptor.type
    if kind is ScalarType.STRING:
        return value if isinstance(value, str) else str(value)
    if kind is ScalarType.INT:
        if isinstance(value, bool):
            raise ValueError(f"Cannot interpret {value!r} as an integer")
        return int(value.strip()) if isinstance(value, str) else int(value)
    if kind is ScalarType.FLOAT:
        if isinstance(value, bool):
            raise ValueError(f"Cannot interpret {value!r} as a number")
        return float(value)
    if kind is ScalarType.BOOLEAN:
        return coerce_boolean(value)
    if kind is ScalarType.DATETIME:
        return coerce_datetime(value)
    return _coerce_json(value)
