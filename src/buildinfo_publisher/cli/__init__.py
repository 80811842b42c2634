"""Command-line interface for the build-info publisher."""

from .main import cli

__all__ = ["cli"]
