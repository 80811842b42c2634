"""Test helpers for faking the repository service."""

from typing import Any, Optional
from unittest.mock import MagicMock, Mock

from buildinfo_publisher.services import (
    ArtifactoryClient,
    ServiceCapabilities,
    ServiceVersion,
)

BASE_URL = "http://repo.example.com/artifactory"


def make_response(
    status_code: int = 200, json_data: Any = None, reason: str = "OK"
) -> Mock:
    """Create a fake requests response."""
    response = Mock()
    response.status_code = status_code
    response.reason = reason
    response.url = BASE_URL
    if json_data is None:
        response.json.side_effect = ValueError("No JSON")
    else:
        response.json.return_value = json_data
    return response


def make_client(version: Optional[str] = "2.6.0") -> ArtifactoryClient:
    """Create a client with a fake session and a known service version."""
    session = MagicMock()
    session.request.return_value = make_response(201)
    client = ArtifactoryClient(BASE_URL, "admin", "secret", session=session)
    if version is not None:
        client._capabilities = ServiceCapabilities(ServiceVersion(version))
    return client
