"""AccessHub CLI entry point."""

import os

import click


@click.group()
def cli():
    """AccessHub - identity and access management service CLI."""
    pass


@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
@click.option("--reload", is_flag=True, default=False, help="Reload on code changes.")
def serve(host: str, port: int, reload: bool):
    """Run the API server (settings come from the environment)."""
    import uvicorn

    uvicorn.run(
        "accesshub.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=os.environ.get("ACCESSHUB_LOG_LEVEL", "info").lower(),
    )


@cli.command("hash-password")
@click.password_option(help="Password to hash.")
def hash_password(password: str):
    """Print an argon2 hash, e.g. for seeding an admin account."""
    from accesshub.auth.password import PasswordService

    click.echo(PasswordService().hash(password))


# Register subcommand groups
from accesshub.cli.metadata_cmd import metadata  # noqa: E402
from accesshub.cli.query_cmd import query  # noqa: E402

cli.add_command(metadata)
cli.add_command(query)
