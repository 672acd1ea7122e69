"""DocumentStore Protocol - shared interface for all storage backends."""

from contextlib import AbstractContextManager
from typing import Any, Protocol, runtime_checkable

Where = dict[str, Any]
Select = dict[str, Any]
OrderBy = dict[str, Any] | list[dict[str, Any]]


@runtime_checkable
class DocumentStore(Protocol):
    """Interface all document stores must implement.

    Queries use the where/select/orderBy tree shapes produced by the query
    engine: ``AND``/``OR``/``NOT`` nodes, field equality, operator maps such as
    ``{"contains": "x", "mode": "insensitive"}`` or ``{"has": "x"}``, and
    ``is``/``some`` wrappers for relations and embedded composites.

    Entities are referenced by name (``"User"``, ``"Permission"``). Records
    are plain dicts keyed by field name.
    """

    def find_many(
        self,
        entity: str,
        where: Where | None = None,
        select: Select | None = None,
        order_by: OrderBy | None = None,
        skip: int = 0,
        take: int | None = None,
    ) -> list[dict[str, Any]]: ...

    def find_first(
        self,
        entity: str,
        where: Where | None = None,
        select: Select | None = None,
        order_by: OrderBy | None = None,
    ) -> dict[str, Any] | None: ...

    def find_unique(
        self, entity: str, id: str, select: Select | None = None
    ) -> dict[str, Any] | None: ...

    def count(self, entity: str, where: Where | None = None) -> int: ...

    def create(self, entity: str, data: dict[str, Any]) -> dict[str, Any]: ...

    def update(
        self, entity: str, id: str, data: dict[str, Any]
    ) -> dict[str, Any] | None: ...

    def update_many(self, entity: str, where: Where, data: dict[str, Any]) -> int: ...

    def delete(self, entity: str, id: str) -> bool: ...

    def delete_many(self, entity: str, where: Where) -> int: ...

    def transaction(self) -> AbstractContextManager[None]:
        """Group writes so that either all of them commit or none do."""
        ...

    def close(self) -> None: ...
