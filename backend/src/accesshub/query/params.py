"""Validate raw list-endpoint query parameters into a typed request."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from accesshub.errors import QueryValidationError
from accesshub.query.coercion import coerce_boolean
from accesshub.query.response import OutputFlags

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
DEFAULT_ORDER = "desc"

INVALID_PAGE = "Invalid page number"
INVALID_LIMIT = "Invalid limit number"
INVALID_ORDER = "Order must be either 'asc' or 'desc'"
INVALID_FIELDS = "Fields parameter must be a comma-separated string"
INVALID_SORT = "Sort parameter must be a valid JSON string or field name"
INVALID_QUERY = "Query parameter must be a string"
FILTER_NOT_ARRAY = "Filter must be an array of filter objects"
FILTER_BAD_JSON = "Filter must be valid JSON array"


@dataclass(frozen=True)
class QueryRequest:
    """A validated list request.

    ``filter`` is either the flat ``key:value,...`` string or a list of
    filter objects; ``sort`` is a field name or an already parsed mapping.
    """

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    order: str = DEFAULT_ORDER
    sort: str | dict[str, Any] | None = None
    fields: str | None = None
    query: str | None = None
    filter: str | list[dict[str, Any]] | None = None
    documents: bool = False
    pagination: bool = False
    count: bool = False

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def flags(self) -> OutputFlags:
        return OutputFlags(documents=self.documents, pagination=self.pagination, count=self.count)


def _positive_int(value: Any, default: int, field: str, message: str) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise QueryValidationError(field, message)
    if isinstance(value, int):
        number = value
    elif isinstance(value, str):
        try:
            number = int(value.strip())
        except ValueError:
            raise QueryValidationError(field, message)
    else:
        raise QueryValidationError(field, message)
    if number < 1:
        raise QueryValidationError(field, message)
    return number


def _parse_order(value: Any) -> str:
    if value is None or value == "":
        return DEFAULT_ORDER
    if value not in ("asc", "desc"):
        raise QueryValidationError("order", INVALID_ORDER)
    return value


def _parse_sort(value: Any) -> str | dict[str, Any] | None:
    if value is None or value == "":
        return None
    if isinstance(value, dict):
        return value
    if not isinstance(value, str):
        raise QueryValidationError("sort", INVALID_SORT)
    if not value.lstrip().startswith("{"):
        return value.strip()
    try:
        parsed = json.loads(value)
    except ValueError:
        raise QueryValidationError("sort", INVALID_SORT)
    if not isinstance(parsed, dict):
        raise QueryValidationError("sort", INVALID_SORT)
    return parsed


def _parse_filter(value: Any) -> str | list[dict[str, Any]] | None:
    if value is None or value == "":
        return None

    if isinstance(value, str):
        text = value.strip()
        if not text.startswith(("[", "{")):
            # Flat key:value form, compiled against entity metadata later
            return text
        try:
            value = json.loads(text)
        except ValueError:
            raise QueryValidationError("filter", FILTER_BAD_JSON)

    if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
        raise QueryValidationError("filter", FILTER_NOT_ARRAY)
    return value


def _optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def parse_query_params(raw: Mapping[str, Any]) -> QueryRequest:
    """Validate raw query parameters.

    Values are strings (or lists of strings for repeated parameters) as they
    arrive over HTTP; native values are accepted too.

    Raises:
        QueryValidationError: naming the first offending parameter
    """
    fields = raw.get("fields")
    if fields is not None and not isinstance(fields, str):
        raise QueryValidationError("fields", INVALID_FIELDS)

    query = raw.get("query")
    if query is not None and not isinstance(query, str):
        raise QueryValidationError("query", INVALID_QUERY)

    return QueryRequest(
        page=_positive_int(raw.get("page"), DEFAULT_PAGE, "page", INVALID_PAGE),
        limit=_positive_int(raw.get("limit"), DEFAULT_LIMIT, "limit", INVALID_LIMIT),
        order=_parse_order(raw.get("order")),
        sort=_parse_sort(raw.get("sort")),
        fields=_optional_text(fields),
        query=_optional_text(query),
        filter=_parse_filter(raw.get("filter")),
        documents=coerce_boolean(raw.get("documents")) or coerce_boolean(raw.get("document")),
        pagination=coerce_boolean(raw.get("pagination")),
        count=coerce_boolean(raw.get("count")),
    )
