"""Assemble list responses from the requested output flags.

Callers pick any subset of {documents, count, pagination}; each of the eight
combinations maps to exactly one response shape.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from accesshub.metadata import EntityModel

PLACEHOLDER_MESSAGE = "No data returned. Please specify query parameters to retrieve data."
SAMPLE_PARAMETERS = {"document": "true", "pagination": "true", "count": "true"}


@dataclass(frozen=True)
class OutputFlags:
    documents: bool = False
    pagination: bool = False
    count: bool = False

    @property
    def needs_records(self) -> bool:
        return self.documents

    @property
    def needs_total(self) -> bool:
        return self.count or self.pagination


@dataclass
class ListResult:
    message: str
    data: dict[str, Any]


def build_pagination(total: int, page: int, limit: int) -> dict[str, Any]:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": total_pages,
        "hasNext": page < total_pages,
        "hasPrev": page > 1,
    }


@dataclass
class _Parts:
    entity: EntityModel
    records: list[dict[str, Any]]
    total: int
    page: int
    limit: int

    @property
    def name(self) -> str:
        return self.entity.display_name

    @property
    def pagination(self) -> dict[str, Any]:
        return build_pagination(self.total, self.page, self.limit)


def _placeholder(p: _Parts) -> ListResult:
    return ListResult(
        f"{p.name} endpoint accessed successfully.",
        {"message": PLACEHOLDER_MESSAGE, "sampleParameters": dict(SAMPLE_PARAMETERS)},
    )


def _pagination_only(p: _Parts) -> ListResult:
    return ListResult(f"{p.name} pagination retrieved successfully", {"pagination": p.pagination})


def _documents_only(p: _Parts) -> ListResult:
    return ListResult(f"{p.name} documents retrieved successfully", {p.entity.data_key: p.records})


def _documents_pagination(p: _Parts) -> ListResult:
    return ListResult(
        f"{p.name} documents and pagination retrieved successfully",
        {p.entity.data_key: p.records, "pagination": p.pagination},
    )


def _count_only(p: _Parts) -> ListResult:
    return ListResult(f"{p.name} count retrieved successfully", {"count": p.total})


def _count_pagination(p: _Parts) -> ListResult:
    return ListResult(
        f"{p.name} count and pagination retrieved successfully",
        {"count": p.total, "pagination": p.pagination},
    )


def _documents_count(p: _Parts) -> ListResult:
    return ListResult(
        f"{p.name} documents and count retrieved successfully",
        {p.entity.data_key: p.records, "count": p.total},
    )


def _everything(p: _Parts) -> ListResult:
    return ListResult(
        f"{p.name} documents, count, and pagination retrieved successfully",
        {p.entity.data_key: p.records, "count": p.total, "pagination": p.pagination},
    )


# (count, documents, pagination) -> shape
RESPONSE_SHAPES: dict[tuple[bool, bool, bool], Callable[[_Parts], ListResult]] = {
    (False, False, False): _placeholder,
    (False, False, True): _pagination_only,
    (False, True, False): _documents_only,
    (False, True, True): _documents_pagination,
    (True, False, False): _count_only,
    (True, False, True): _count_pagination,
    (True, True, False): _documents_count,
    (True, True, True): _everything,
}


def assemble_list_response(
    entity: EntityModel,
    flags: OutputFlags,
    records: list[dict[str, Any]] | None,
    total: int | None,
    page: int,
    limit: int,
) -> ListResult:
    shape = RESPONSE_SHAPES[(flags.count, flags.documents, flags.pagination)]
    return shape(_Parts(entity, records or [], total or 0, page, limit))
