"""Shared helpers for CLI commands."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import click
from pydantic import ValidationError

from ...config import Config, get_config
from ...exceptions import DeployValidationError
from ...models import BuildInfo, DeployDetail
from ...services import ArtifactoryClient

logger = logging.getLogger(__name__)


def load_config(config_override: Optional[Dict[str, Any]] = None) -> Config:
    """Load configuration and apply overrides.

    Args:
        config_override: Attribute values replacing the configured ones;
            ``None`` values are ignored
    """
    config = get_config()
    for key, value in (config_override or {}).items():
        if value is not None:
            setattr(config, key, value)
    return config


def create_client(config: Config) -> ArtifactoryClient:
    """Create a service client, requiring a configured URL."""
    if not config.url:
        raise click.UsageError(
            "Repository service URL is not configured "
            "(use --url or BUILDINFO_PUBLISHER_URL)"
        )
    return ArtifactoryClient(
        config.url,
        username=config.username,
        password=config.password,
        timeout=config.timeout,
    )


def load_build_info(path: Path) -> BuildInfo:
    """Read a build-info JSON file."""
    try:
        return BuildInfo.from_file(path)
    except (ValueError, ValidationError) as e:
        raise click.ClickException(f"Invalid build info file {path}: {e}") from e


def load_deploy_details(path: Path) -> Dict[str, DeployDetail]:
    """Read deploy templates from a JSON file.

    The file holds an object mapping ``<module-id>:<artifact-name>`` to a
    deployables record (``artifactPath``, ``file``, ``targetRepository`` and
    optional ``properties``).
    """
    try:
        records = json.loads(Path(path).read_text(encoding="utf-8"))
    except ValueError as e:
        raise click.ClickException(f"Invalid deployables file {path}: {e}") from e
    if not isinstance(records, dict):
        raise click.ClickException(
            f"Invalid deployables file {path}: expected an object keyed by "
            "artifact id"
        )

    details = {}
    for artifact_id, record in records.items():
        try:
            details[artifact_id] = DeployDetail.from_record(record)
        except DeployValidationError as e:
            raise click.ClickException(f"{artifact_id}: {e}") from e
    logger.debug("Loaded %d deploy templates from %s", len(details), path)
    return details
