"""Command-line interface for the build-info publisher.

This is the main entry point that delegates to command modules.
"""

from pathlib import Path
from typing import Any, Optional

import click

from ..utils.logging_config import configure_third_party_loggers, setup_logging
from .commands import (
    aggregate_command,
    deploy_command,
    last_modified_command,
    load_config,
    repos_command,
    version_command,
)


@click.group()
@click.option(
    "--log-level",
    default="INFO",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    help="Set logging level",
)
@click.option("--log-file", type=click.Path(), help="Log to file")
@click.option("--url", help="Repository service base URL")
@click.option("--username", help="Repository service user")
@click.option("--password", help="Repository service password")
@click.pass_context
def cli(
    ctx: Any,
    log_level: str,
    log_file: Optional[str],
    url: Optional[str],
    username: Optional[str],
    password: Optional[str],
) -> None:
    """Build-info publisher.

    Deploys build artifacts and their build info to an artifact repository.
    """
    # Set up logging
    setup_logging(log_level=log_level, log_file=Path(log_file) if log_file else None)
    configure_third_party_loggers()

    config_override = {}
    if url:
        config_override["url"] = url.rstrip("/")
    if username:
        config_override["username"] = username
    if password:
        config_override["password"] = password

    ctx.obj = load_config(config_override)


# Register commands
cli.add_command(deploy_command)
cli.add_command(aggregate_command)
cli.add_command(repos_command)
cli.add_command(version_command)
cli.add_command(last_modified_command)


if __name__ == "__main__":
    cli()
