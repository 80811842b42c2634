"""Utility helpers for the build-info publisher."""

from .checksums import ChecksumComputer
from .logging_config import configure_third_party_loggers, set_log_level, setup_logging

__all__ = [
    "ChecksumComputer",
    "configure_third_party_loggers",
    "set_log_level",
    "setup_logging",
]
