"""Configuration management for the build-info publisher."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .core.deploy.patterns import IncludeExcludePatterns

ENV_PREFIX = "BUILDINFO_PUBLISHER_"

# Load .env file from config directory or the working directory
_config_env = Path(__file__).parent.parent.parent / "config" / ".env"
if _config_env.exists():
    load_dotenv(_config_env)
else:
    load_dotenv()


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def _env_flag(name: str, default: bool) -> bool:
    value = _env(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_path(name: str) -> Optional[Path]:
    value = _env(name)
    return Path(value).expanduser() if value else None


class Config:
    """Publisher configuration."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        # Repository service connection
        self.url = (_env("URL", "") or "").rstrip("/")
        self.username = _env("USERNAME")
        self.password = _env("PASSWORD")
        self.timeout = int(_env("TIMEOUT", "300") or "300")

        # What to publish
        self.publish_artifacts = _env_flag("PUBLISH_ARTIFACTS", True)
        self.publish_build_info = _env_flag("PUBLISH_BUILD_INFO", True)
        # Publish even when tests failed
        self.even_unstable = _env_flag("EVEN_UNSTABLE", False)

        # Comma-separated Ant-style patterns
        self.include_patterns = _env("INCLUDE_PATTERNS", "") or ""
        self.exclude_patterns = _env("EXCLUDE_PATTERNS", "") or ""

        # Build-info export file (defaults to <basedir>/target/build-info.json)
        self.export_file = _env_path("EXPORT_FILE")

        # Multi-agent aggregation
        self.aggregate_artifacts = _env_path("AGGREGATE_ARTIFACTS")
        self.copy_aggregated_artifacts = _env_flag("COPY_AGGREGATED_ARTIFACTS", False)
        self.publish_aggregated_artifacts = _env_flag(
            "PUBLISH_AGGREGATED_ARTIFACTS", False
        )

    def deploy_patterns(self) -> IncludeExcludePatterns:
        """Get include/exclude patterns for artifact deployment."""
        return IncludeExcludePatterns.from_strings(
            self.include_patterns, self.exclude_patterns
        )

    @property
    def is_aggregating(self) -> bool:
        """Whether an aggregation directory is configured."""
        return self.aggregate_artifacts is not None


def get_config() -> Config:
    """Get publisher configuration."""
    return Config()
