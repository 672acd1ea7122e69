"""Run a validated list request against a document store."""

from __future__ import annotations

import logging
from typing import Any

from accesshub.metadata import MetadataLoader
from accesshub.persistence import DocumentStore
from accesshub.query.filters import FilterCompiler
from accesshub.query.params import QueryRequest
from accesshub.query.response import ListResult, assemble_list_response
from accesshub.query.selection import SelectionBuilder, prune_composites
from accesshub.query.sorting import build_order_by


class ListQueryExecutor:
    """Compiles a QueryRequest and runs only the store calls its flags need.

    Records are fetched only when documents are requested; the total is
    counted only when count or pagination is requested.
    """

    def __init__(
        self,
        store: DocumentStore,
        metadata: MetadataLoader,
        filters: FilterCompiler,
        selection: SelectionBuilder,
        logger: logging.Logger | None = None,
    ):
        self._store = store
        self._metadata = metadata
        self._filters = filters
        self._selection = selection
        self._logger = logger or logging.getLogger(__name__)

    def base_where(self, entity: str) -> dict[str, Any]:
        model = self._metadata.require_entity(entity)
        return {"deletedAt": None} if model.soft_delete else {}

    def execute(
        self, entity: str, request: QueryRequest, base: dict[str, Any] | None = None
    ) -> ListResult:
        model = self._metadata.require_entity(entity)
        flags = request.flags
        where = self._filters.build_where(
            entity,
            base=self.base_where(entity) if base is None else base,
            query=request.query,
            filter=request.filter,
        )

        records = None
        if flags.needs_records:
            plan = self._selection.build(entity, request.fields)
            found = self._store.find_many(
                entity,
                where=where,
                select=plan.tree,
                order_by=build_order_by(request.sort, request.order),
                skip=request.skip,
                take=request.limit,
            )
            records = [self._metadata.redact(entity, r) for r in prune_composites(found, plan)]

        total = self._store.count(entity, where=where) if flags.needs_total else None

        self._logger.debug(
            "List %s page=%d limit=%d where=%s -> %s records, total=%s",
            entity,
            request.page,
            request.limit,
            where,
            len(records) if records is not None else "-",
            total if total is not None else "-",
        )
        return assemble_list_response(model, flags, records, total, request.page, request.limit)
