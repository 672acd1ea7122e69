"""Query engine: list parameters to store queries to shaped responses."""

from accesshub.query.executor import ListQueryExecutor
from accesshub.query.filters import FilterCompiler, parse_flat_filter
from accesshub.query.params import QueryRequest, parse_query_params
from accesshub.query.response import ListResult, OutputFlags, assemble_list_response, build_pagination
from accesshub.query.selection import SelectionBuilder, SelectionPlan, prune_composites
from accesshub.query.sorting import build_order_by

__all__ = [
    "ListQueryExecutor",
    "FilterCompiler",
    "parse_flat_filter",
    "QueryRequest",
    "parse_query_params",
    "ListResult",
    "OutputFlags",
    "assemble_list_response",
    "build_pagination",
    "SelectionBuilder",
    "SelectionPlan",
    "prune_composites",
    "build_order_by",
]
