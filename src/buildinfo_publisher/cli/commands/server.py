"""Repository service inspection commands."""

import logging

import click
from rich.console import Console

from ...config import Config
from ...exceptions import TransportError
from ..display import display_capabilities, display_repositories
from .common import create_client

console = Console()
logger = logging.getLogger(__name__)

REPOSITORY_TYPES = ("local", "remote", "virtual", "local-and-cache")


@click.command("repos")
@click.option(
    "--type",
    "repo_type",
    default="local",
    type=click.Choice(REPOSITORY_TYPES),
    help="Repository type to list",
)
@click.pass_obj
def repos_command(config: Config, repo_type: str) -> None:
    """List repository keys."""
    with create_client(config) as client:
        listings = {
            "local": client.get_local_repositories_keys,
            "remote": client.get_remote_repositories_keys,
            "virtual": client.get_virtual_repositories_keys,
            "local-and-cache": client.get_local_and_cache_repositories_keys,
        }
        try:
            keys = listings[repo_type]()
        except TransportError as e:
            console.print(f"[bold red]❌ {e}[/bold red]")
            raise click.Abort() from e

    display_repositories(keys, repo_type)


@click.command("version")
@click.pass_obj
def version_command(config: Config) -> None:
    """Show the repository service version and supported features."""
    with create_client(config) as client:
        capabilities = client.capabilities
    display_capabilities(capabilities, config.url)


@click.command("last-modified")
@click.argument("path")
@click.pass_obj
def last_modified_command(config: Config, path: str) -> None:
    """Show when PATH (<repo>/<path>) was last modified."""
    with create_client(config) as client:
        try:
            last_modified = client.get_item_last_modified(path)
        except TransportError as e:
            console.print(f"[bold red]❌ {e}[/bold red]")
            raise click.Abort() from e

    if last_modified:
        console.print(f"{path}: [green]{last_modified}[/green]")
    else:
        console.print(f"[yellow]No modification time reported for {path}[/yellow]")
