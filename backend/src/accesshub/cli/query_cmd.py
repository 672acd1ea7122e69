"""Query CLI commands - compile list parameters into store queries."""

import json
import logging

import click

from accesshub.cli.metadata_cmd import _load, metadata_path_option
from accesshub.errors import ValidationError
from accesshub.query import FilterCompiler, SelectionBuilder, build_order_by, parse_query_params


@click.group()
def query():
    """Query commands."""
    pass


@query.command("compile")
@click.argument("entity_name")
@click.option("--filter", "filter_", default=None, help="Filter as JSON or 'key:value,...'.")
@click.option("--fields", default=None, help="Comma separated field paths.")
@click.option("--query", "search", default=None, help="Free-text search.")
@click.option("--sort", default=None, help="Sort field or JSON mapping.")
@click.option("--order", default="desc", show_default=True)
@metadata_path_option
def compile_cmd(entity_name, filter_, fields, search, sort, order, metadata_path):
    """Print the where, select and orderBy trees a list request compiles to."""
    loader = _load(metadata_path)
    entity = loader.get_entity(entity_name)
    if entity is None:
        click.echo(f"Error: unknown entity '{entity_name}'", err=True)
        raise SystemExit(1)

    raw = {"filter": filter_, "fields": fields, "query": search, "sort": sort, "order": order}
    try:
        request = parse_query_params({k: v for k, v in raw.items() if v is not None})
    except ValidationError as e:
        click.echo(click.style(f"Invalid parameters: {e.message}", fg="red"), err=True)
        raise SystemExit(1)

    compiler = FilterCompiler(loader, logger=logging.getLogger("accesshub.cli"))
    base = {"deletedAt": None} if entity.soft_delete else {}
    plan = SelectionBuilder(loader).build(entity.name, request.fields)
    compiled = {
        "where": compiler.build_where(entity.name, base, request.query, request.filter),
        "select": plan.tree,
        "orderBy": build_order_by(request.sort, request.order),
        "compositePaths": [
            ".".join(p.field + p.sub_path) for p in plan.composite_paths
        ],
    }
    click.echo(json.dumps(compiled, indent=2, default=str))
