"""Normalise ``sort``/``order`` parameters into an orderBy tree."""

import json
from typing import Any


def _nest(path: str, direction: str) -> dict[str, Any]:
    """``person.firstName`` -> ``{"person": {"firstName": direction}}``."""
    result: Any = direction
    for segment in reversed(path.split(".")):
        result = {segment: result}
    return result


def _validated(mapping: dict[str, Any], default: str) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in mapping.items():
        if isinstance(value, dict):
            nested = _validated(value, default)
            if nested:
                result[key] = nested
        elif value in ("asc", "desc"):
            result[key] = value
        else:
            result[key] = default
    return result


def build_order_by(sort: str | dict[str, Any] | None, order: str = "desc") -> dict[str, Any]:
    """Build an orderBy tree.

    A bare field name sorts by that field in ``order``; a mapping keeps its
    own directions, replacing invalid ones by ``order``. Anything unusable
    falls back to ordering by ``id``.
    """
    direction = order if order in ("asc", "desc") else "desc"
    fallback = {"id": direction}

    if sort is None:
        return fallback

    if isinstance(sort, str):
        text = sort.strip()
        if not text:
            return fallback
        if not text.startswith("{"):
            if any(not segment for segment in text.split(".")):
                return fallback
            return _nest(text, direction)
        try:
            sort = json.loads(text)
        except ValueError:
            return fallback

    if not isinstance(sort, dict):
        return fallback
    return _validated(sort, direction) or fallback
