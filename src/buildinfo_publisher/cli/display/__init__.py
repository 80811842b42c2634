"""CLI display and formatting utilities."""

from .formatters import (
    display_capabilities,
    display_deployment_result,
    display_duplicates,
    display_repositories,
)

__all__ = [
    "display_capabilities",
    "display_deployment_result",
    "display_duplicates",
    "display_repositories",
]
