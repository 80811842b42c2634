"""Build-info publisher.

Publishes build artifacts and their build-info document to an artifact
repository service, with checksum deploy, an all-or-nothing duplicate check
and aggregation of the output of several build agents.
"""

__version__ = "1.0.0"

from .config import Config
from .core.deploy import DeploymentOrchestrator, DeploymentResult
from .exceptions import PublisherError
from .models import BuildInfo, DeployableArtifactSet, DeployDetail
from .services import ArtifactoryClient

__all__ = [
    "ArtifactoryClient",
    "BuildInfo",
    "Config",
    "DeployDetail",
    "DeployableArtifactSet",
    "DeploymentOrchestrator",
    "DeploymentResult",
    "PublisherError",
]
