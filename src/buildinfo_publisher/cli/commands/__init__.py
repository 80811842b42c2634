"""CLI command modules."""

from .common import load_config, load_deploy_details
from .deploy import aggregate_command, deploy_command
from .server import last_modified_command, repos_command, version_command

__all__ = [
    "aggregate_command",
    "deploy_command",
    "last_modified_command",
    "load_config",
    "load_deploy_details",
    "repos_command",
    "version_command",
]
