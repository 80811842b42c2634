"""Services talking to the artifact repository."""

from .artifactory_client import ArtifactoryClient, encode_path, matrix_params
from .versions import ServiceCapabilities, ServiceVersion

__all__ = [
    "ArtifactoryClient",
    "ServiceCapabilities",
    "ServiceVersion",
    "encode_path",
    "matrix_params",
]
