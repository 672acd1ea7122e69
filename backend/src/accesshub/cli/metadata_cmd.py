"""Metadata CLI commands - validate, list and show."""

from pathlib import Path

import click

from accesshub.metadata import MetadataError, MetadataLoader
from accesshub.metadata.types import FieldDescriptor

metadata_path_option = click.option(
    "--path",
    "metadata_path",
    default=None,
    envvar="ACCESSHUB_METADATA_PATH",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Definitions directory (defaults to the bundled definitions).",
)


def _load(metadata_path: Path | None) -> MetadataLoader:
    loader = MetadataLoader(metadata_path)
    try:
        loader.load_all()
    except MetadataError as e:
        click.echo(click.style(f"Metadata is invalid: {e}", fg="red"), err=True)
        raise SystemExit(1)
    return loader


def describe_field(descriptor: FieldDescriptor) -> str:
    suffix = "[]" if descriptor.is_list else ""
    if descriptor.kind == "scalar":
        return f"{descriptor.type.value}{suffix}"
    if descriptor.kind == "enum":
        return f"enum {descriptor.enum_name}{suffix}"
    if descriptor.kind == "composite":
        return f"composite {descriptor.type_name}{suffix}"
    keys = f"{descriptor.local_key} -> {descriptor.foreign_key}"
    return f"relation {descriptor.entity}{suffix} ({keys})"


@click.group()
def metadata():
    """Metadata commands."""
    pass


@metadata.command()
@metadata_path_option
def validate(metadata_path: Path | None):
    """Load every definition and check cross references."""
    loader = _load(metadata_path)
    entities = loader.list_entities()
    click.echo(f"Loaded {len(entities)} entities:")
    for name in sorted(entities):
        entity = loader.require_entity(name)
        click.echo(f"  ✓ {name} ({len(entity.fields)} fields)")
    click.echo(click.style("\nAll metadata is valid.", fg="green", bold=True))


@metadata.command("show")
@click.argument("entity_name")
@metadata_path_option
def show(entity_name: str, metadata_path: Path | None):
    """Show the fields of one entity."""
    loader = _load(metadata_path)
    entity = loader.get_entity(entity_name)
    if entity is None:
        click.echo(f"Error: unknown entity '{entity_name}'", err=True)
        raise SystemExit(1)

    click.echo(f"{entity.name} ({entity.display_name}, data key: {entity.data_key})")
    click.echo(f"  resource:    {entity.resource or '-'}")
    click.echo(f"  soft delete: {'yes' if entity.soft_delete else 'no'}")
    if entity.search_fields:
        click.echo(f"  search:      {', '.join(entity.search_fields)}")
    for key in entity.unique:
        click.echo(f"  unique:      {', '.join(key)}")
    click.echo("  fields:")
    for name, descriptor in entity.fields.items():
        hidden = " (hidden)" if name in entity.hidden else ""
        click.echo(f"    {name}: {describe_field(descriptor)}{hidden}")
