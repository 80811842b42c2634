"""Display formatters and UI helpers for CLI."""

import logging
from typing import List, Sequence, Tuple

from rich.console import Console
from rich.table import Table

from ...core.deploy import DeploymentResult, DeploymentStage
from ...services import ServiceCapabilities

console = Console()
logger = logging.getLogger(__name__)


def _yes_no(value: bool) -> str:
    return "[green]yes[/green]" if value else "[dim]no[/dim]"


def display_deployment_result(result: DeploymentResult) -> None:
    """Display the outcome of a deployment.

    Args:
        result: Deployment result
    """
    summary = result.get_summary()
    if result.stopped_after == DeploymentStage.DONE:
        console.print("\n[bold green]✅ Deployment complete[/bold green]\n")
    else:
        console.print(
            "\n[bold yellow]⏸️  Stopped after "
            f"{summary['stages'][-1]} stage[/bold yellow]\n"
        )

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan", width=30)
    table.add_column("Value", style="green", justify="right")

    table.add_row("Stages", " → ".join(summary["stages"]))
    table.add_row("Deployable Artifacts", str(summary["deployables"]))
    table.add_row("Uploaded", str(summary["uploaded"]))
    table.add_row("Checksum Deployed", str(summary["checksum_deployed"]))
    if summary["skipped"]:
        table.add_row(
            "Skipped (patterns)", f"[yellow]{summary['skipped']}[/yellow]"
        )
    table.add_row("Build Info Sent", _yes_no(summary["build_info_sent"]))
    if "build_info_file" in summary:
        table.add_row("Build Info File", summary["build_info_file"])
    if "aggregation" in summary:
        aggregation = summary["aggregation"]
        table.add_row("Aggregated Build Info", aggregation["build_info_file"])
        table.add_row("Aggregated Deployables", aggregation["deployables_file"])
        table.add_row("Copied Files", str(aggregation["copied_files"]))

    console.print(table)
    console.print()


def display_duplicates(duplicates: Sequence[Tuple[str, str]]) -> None:
    """Display artifacts that already exist in their target repository.

    Args:
        duplicates: (file name, repository) pairs
    """
    console.print(
        "\n[bold red]❌ The following artifacts have duplicates in the "
        "target repo:[/bold red]\n"
    )
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("File", style="cyan")
    table.add_column("Repository", style="yellow")
    for name, repository in duplicates:
        table.add_row(name, repository)
    console.print(table)
    console.print(
        "[yellow]Skipping deployment of artifacts (if any) and build info.[/yellow]"
    )


def display_repositories(keys: List[str], repo_type: str) -> None:
    """Display repository keys.

    Args:
        keys: Repository keys
        repo_type: Listed repository type
    """
    if not keys:
        console.print(f"[yellow]No {repo_type} repositories found[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column(f"{repo_type.capitalize()} Repositories", style="cyan")
    for key in keys:
        table.add_row(key)
    console.print(table)


def display_capabilities(capabilities: ServiceCapabilities, url: str) -> None:
    """Display the service version and the features it supports.

    Args:
        capabilities: Service capabilities
        url: Service base URL
    """
    if capabilities.version.is_not_found:
        console.print(f"[bold red]❌ No repository service found at {url}[/bold red]")
        return

    table = Table(show_header=False)
    table.add_column("Feature", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("URL", url)
    table.add_row("Version", str(capabilities.version))
    table.add_row("Supported", _yes_no(capabilities.is_compatible))
    table.add_row(
        "Unknown Build Info Properties",
        _yes_no(capabilities.tolerates_unknown_properties),
    )
    table.add_row(
        "Non-numeric Build Numbers",
        _yes_no(capabilities.tolerates_non_numeric_build_numbers),
    )
    table.add_row(
        "Checksums From Upload Headers",
        _yes_no(capabilities.derives_checksums_from_headers),
    )
    table.add_row("Checksum Deploy", _yes_no(capabilities.supports_checksum_deploy))
    console.print(table)
