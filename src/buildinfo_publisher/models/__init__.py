"""Models for the build-info publisher."""

from .models import (
    Artifact,
    BuildInfo,
    Dependency,
    DeployableArtifactSet,
    DeployDetail,
    Module,
    artifact_id,
)

__all__ = [
    "Artifact",
    "BuildInfo",
    "Dependency",
    "DeployDetail",
    "DeployableArtifactSet",
    "Module",
    "artifact_id",
]
