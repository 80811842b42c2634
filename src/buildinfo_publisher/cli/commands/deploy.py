"""Deploy and aggregate commands."""

import logging
from pathlib import Path
from typing import Any, Optional

import click
from rich.console import Console

from ...config import Config
from ...core.deploy import DeploymentOrchestrator, DeploymentResult
from ...exceptions import DuplicateConflictError, PublisherError
from ..display import display_deployment_result, display_duplicates
from .common import create_client, load_build_info, load_deploy_details

console = Console()
logger = logging.getLogger(__name__)


def _run_deployment(
    config: Config,
    build_info: Path,
    deployables: Path,
    tests_failed: bool,
    basedir: Optional[Path],
) -> DeploymentResult:
    build = load_build_info(build_info)
    details = load_deploy_details(deployables)
    orchestrator = DeploymentOrchestrator(client_factory=create_client)

    try:
        return orchestrator.deploy(
            build, config, details, tests_failed=tests_failed, basedir=basedir
        )
    except DuplicateConflictError as e:
        display_duplicates(e.duplicates)
        raise click.Abort() from e
    except PublisherError as e:
        logger.debug("Deployment failed", exc_info=True)
        console.print(f"[bold red]❌ Deployment failed: {e}[/bold red]")
        raise click.Abort() from e


build_info_argument = click.argument(
    "build_info", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
deployables_argument = click.argument(
    "deployables", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
basedir_option = click.option(
    "--basedir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Build base directory (build info is saved to <basedir>/target)",
)
export_file_option = click.option(
    "--export-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Where to save the build info",
)


@click.command("deploy")
@build_info_argument
@deployables_argument
@basedir_option
@export_file_option
@click.option("--include", help="Comma-separated include patterns")
@click.option("--exclude", help="Comma-separated exclude patterns")
@click.option(
    "--no-publish-artifacts",
    "skip_artifacts",
    is_flag=True,
    help="Do not deploy the artifacts",
)
@click.option(
    "--no-publish-build-info",
    "skip_build_info",
    is_flag=True,
    help="Do not send the build info",
)
@click.option(
    "--even-unstable",
    is_flag=True,
    help="Publish even when tests failed",
)
@click.option("--tests-failed", is_flag=True, help="Mark the build as unstable")
@click.option(
    "--aggregate-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Shared directory for aggregating several agents",
)
@click.option(
    "--copy-aggregated",
    is_flag=True,
    help="Copy artifacts into the aggregation directory",
)
@click.option(
    "--publish-aggregated",
    is_flag=True,
    help="Publish the aggregated artifacts and build info",
)
@click.pass_obj
def deploy_command(
    config: Config,
    build_info: Path,
    deployables: Path,
    basedir: Optional[Path],
    export_file: Optional[Path],
    include: Optional[str],
    exclude: Optional[str],
    skip_artifacts: bool,
    skip_build_info: bool,
    even_unstable: bool,
    tests_failed: bool,
    aggregate_dir: Optional[Path],
    copy_aggregated: bool,
    publish_aggregated: bool,
) -> None:
    """Deploy artifacts and build info.

    BUILD_INFO is the build-info JSON document. DEPLOYABLES is a JSON object
    mapping "<module-id>:<artifact-name>" to the artifact's target repository,
    path, file and properties.

    All artifacts are checked for duplicates before anything is uploaded.
    """
    # Flags only switch configured values, they never reset them
    overrides: dict[str, Any] = {
        "export_file": export_file,
        "include_patterns": include,
        "exclude_patterns": exclude,
        "aggregate_artifacts": aggregate_dir,
    }
    if skip_artifacts:
        overrides["publish_artifacts"] = False
    if skip_build_info:
        overrides["publish_build_info"] = False
    if even_unstable:
        overrides["even_unstable"] = True
    if copy_aggregated:
        overrides["copy_aggregated_artifacts"] = True
    if publish_aggregated:
        overrides["publish_aggregated_artifacts"] = True

    for key, value in overrides.items():
        if value is not None:
            setattr(config, key, value)

    console.print("[bold blue]🚀 Deploying build...[/bold blue]")
    result = _run_deployment(config, build_info, deployables, tests_failed, basedir)
    display_deployment_result(result)


@click.command("aggregate")
@build_info_argument
@deployables_argument
@click.option(
    "--aggregate-dir",
    required=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Shared directory for aggregating several agents",
)
@click.option(
    "--copy",
    "copy_artifacts",
    is_flag=True,
    help="Copy artifacts into the aggregation directory",
)
@basedir_option
@export_file_option
@click.pass_obj
def aggregate_command(
    config: Config,
    build_info: Path,
    deployables: Path,
    aggregate_dir: Path,
    copy_artifacts: bool,
    basedir: Optional[Path],
    export_file: Optional[Path],
) -> None:
    """Merge this agent's output into an aggregation directory.

    Nothing is published; a later "deploy --publish-aggregated" run with the
    same directory publishes the merged result.
    """
    config.aggregate_artifacts = aggregate_dir
    config.copy_aggregated_artifacts = copy_artifacts
    config.publish_aggregated_artifacts = False
    if export_file:
        config.export_file = export_file

    console.print(f"[bold blue]📦 Aggregating into {aggregate_dir}...[/bold blue]")
    result = _run_deployment(config, build_info, deployables, False, basedir)
    display_deployment_result(result)
