"""Shared fixtures for publisher tests."""

from pathlib import Path
from typing import Any

import pytest

from buildinfo_publisher.models import DeployDetail

from .helpers import make_client


@pytest.fixture
def make_file(tmp_path):
    """Factory creating files of a given size below tmp_path."""

    def _make_file(relative: str, size: int = 100, content: bytes = b"") -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content or b"x" * size)
        return path

    return _make_file


@pytest.fixture
def make_detail(make_file):
    """Factory creating DeployDetail objects backed by real files."""

    def _make_detail(
        artifact_path: str,
        repo: str = "libs-release",
        size: int = 100,
        **kwargs: Any,
    ) -> DeployDetail:
        file = kwargs.pop("file", None) or make_file(
            "files/" + artifact_path.lstrip("/"), size=size
        )
        return DeployDetail(
            target_repository=repo, artifact_path=artifact_path, file=file, **kwargs
        )

    return _make_detail


@pytest.fixture
def client():
    """Client for a 2.6.0 service with a fake session."""
    return make_client()
