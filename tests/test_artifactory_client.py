"""Tests for ArtifactoryClient."""

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from buildinfo_publisher.exceptions import TransportError, VersionIncompatibleError
from buildinfo_publisher.models import BuildInfo
from buildinfo_publisher.services import (
    ArtifactoryClient,
    ServiceCapabilities,
    ServiceVersion,
    encode_path,
    matrix_params,
)
from buildinfo_publisher.services.artifactory_client import BUILD_INFO_CONTENT_TYPE

from .helpers import BASE_URL, make_response


@pytest.fixture
def session():
    """Fake requests session."""
    return MagicMock()


@pytest.fixture
def raw_client(session):
    """Client whose version is not yet known."""
    return ArtifactoryClient(BASE_URL + "/", "admin", "secret", session=session)


@pytest.fixture
def build():
    """Build-info document with optional fields set."""
    return BuildInfo.model_validate(
        {
            "name": "app",
            "number": "42",
            "started": "2024-01-01T10:00:00.000+0000",
            "parentName": "parent",
            "parentNumber": "7",
            "buildAgent": {"name": "Gradle"},
            "vcsRevision": "abc",
        }
    )


def version_response(version):
    """Version endpoint response."""
    return make_response(200, {"version": version, "revision": "1"})


class TestHelpers:
    """Test URL helpers."""

    def test_encode_path_keeps_separators(self):
        """Test path encoding."""
        assert encode_path("org/my lib/a+b.jar") == "org/my%20lib/a%2Bb.jar"

    def test_matrix_params(self):
        """Test every property value becomes a matrix parameter."""
        params = matrix_params({"build.name": ["app"], "os": ["linux", "mac os"]})

        assert params == ";build.name=app;os=linux;os=mac%20os"

    def test_matrix_params_empty(self):
        """Test no properties yield no suffix."""
        assert matrix_params({}) == ""
        assert matrix_params(None) == ""


class TestClientSetup:
    """Test client construction."""

    def test_auth_and_trailing_slash(self, raw_client, session):
        """Test basic auth is set and base URL normalized."""
        assert raw_client.url == BASE_URL
        assert session.auth == ("admin", "secret")

    def test_context_manager_closes_session(self, raw_client, session):
        """Test leaving the context closes the session."""
        with raw_client:
            pass

        session.close.assert_called_once()

    def test_connection_error_wrapped(self, raw_client, session):
        """Test requests exceptions become TransportError."""
        session.request.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(TransportError, match="refused") as exc_info:
            raw_client.get_json("/api/repositories", "Failed:")

        assert exc_info.value.url == BASE_URL + "/api/repositories"
        assert isinstance(exc_info.value.__cause__, requests.exceptions.ConnectionError)

    def test_status_error_has_code_and_reason(self, raw_client, session):
        """Test unexpected status is reported with code and reason."""
        session.request.return_value = make_response(500, reason="Server Error")

        with pytest.raises(TransportError) as exc_info:
            raw_client.get_json("/api/repositories", "Failed to list:")

        assert exc_info.value.status_code == 500
        assert "HTTP response code: 500" in str(exc_info.value)
        assert "Server Error" in str(exc_info.value)


class TestVersion:
    """Test version discovery."""

    def test_get_version(self, raw_client, session):
        """Test version is read from the version endpoint."""
        session.request.return_value = version_response("2.6.0")

        version = raw_client.get_version()

        assert str(version) == "2.6.0"
        session.request.assert_called_once_with(
            "GET", BASE_URL + "/api/system/version", timeout=300
        )

    def test_version_not_found(self, raw_client, session):
        """Test 404 means no version."""
        session.request.return_value = make_response(404, reason="Not Found")

        assert raw_client.get_version().is_not_found

    def test_capabilities_resolved_once(self, raw_client, session):
        """Test the version is requested once per client."""
        session.request.return_value = version_response("2.6.0")

        assert raw_client.capabilities.supports_checksum_deploy
        assert raw_client.capabilities.supports_checksum_deploy
        assert session.request.call_count == 1

    def test_capabilities_on_transport_failure(self, raw_client, session):
        """Test an unreachable version endpoint means oldest behaviour."""
        session.request.side_effect = requests.exceptions.Timeout("slow")

        assert raw_client.capabilities.version.is_not_found

    def test_verify_incompatible_version(self, raw_client, session):
        """Test a too old service is rejected."""
        session.request.return_value = version_response("2.2.2")

        with pytest.raises(VersionIncompatibleError, match="2.2.3 or above"):
            raw_client.verify_compatible_version()

    def test_verify_missing_service(self, raw_client, session):
        """Test a missing version endpoint is rejected."""
        session.request.return_value = make_response(404)

        with pytest.raises(VersionIncompatibleError, match="no instance"):
            raw_client.verify_compatible_version()


class TestRepositories:
    """Test repository listings."""

    def test_local_repositories(self, raw_client, session):
        """Test local repository keys."""
        session.request.return_value = make_response(
            200, [{"key": "libs-release-local"}, {"key": "libs-snapshot-local"}]
        )

        keys = raw_client.get_local_repositories_keys()

        assert keys == ["libs-release-local", "libs-snapshot-local"]
        assert session.request.call_args[0][1].endswith(
            "/api/repositories?type=local"
        )

    def test_local_and_cache_repositories(self, raw_client, session):
        """Test remote repositories are listed as caches."""
        session.request.side_effect = [
            make_response(200, [{"key": "libs-release-local"}]),
            make_response(200, [{"key": "jcenter"}, {"key": "central"}]),
        ]

        keys = raw_client.get_local_and_cache_repositories_keys()

        assert keys == ["libs-release-local", "jcenter-cache", "central-cache"]


class TestArtifacts:
    """Test artifact lookups and URLs."""

    def test_check_duplicate_artifact(self, raw_client, session, make_detail):
        """Test a search hit is a duplicate."""
        session.request.return_value = make_response(
            200, {"results": [{"uri": "x"}]}
        )
        detail = make_detail("org/acme/app-1.0.jar", repo="libs-release")

        assert raw_client.check_duplicate_artifact(detail) is True
        method, url = session.request.call_args[0]
        assert method == "GET"
        assert url == BASE_URL + "/api/search/artifact"
        assert session.request.call_args[1]["params"] == {
            "repos": "libs-release",
            "name": "app-1.0.jar",
        }

    def test_check_no_duplicate(self, raw_client, session, make_detail):
        """Test no search results means no duplicate."""
        session.request.return_value = make_response(200, {"results": []})

        assert raw_client.check_duplicate_artifact(make_detail("a.jar")) is False

    def test_deployment_url(self, raw_client, make_detail):
        """Test artifact URL has no doubled slash."""
        detail = make_detail("/org/acme/my app.jar", repo="libs-release")

        assert raw_client.deployment_url(detail) == (
            BASE_URL + "/libs-release/org/acme/my%20app.jar"
        )

    def test_item_last_modified(self, raw_client, session):
        """Test last-modified lookup through the storage API."""
        session.request.return_value = make_response(
            200, {"uri": "x", "lastModified": "2024-01-02T00:00:00.000Z"}
        )

        result = raw_client.get_item_last_modified("/libs-release/org/acme")

        assert result == "2024-01-02T00:00:00.000Z"
        assert session.request.call_args[0][1] == (
            BASE_URL + "/api/storage/libs-release/org/acme?lastModified&deep=1"
        )


class TestBuildInfo:
    """Test build-info publishing."""

    def test_send_build_info(self, raw_client, session, build):
        """Test build info is PUT with its content type."""
        session.request.side_effect = [version_response("2.6.0"), make_response(204)]

        raw_client.send_build_info(build)

        method, url = session.request.call_args[0]
        kwargs = session.request.call_args[1]
        assert method == "PUT"
        assert url == BASE_URL + "/api/build"
        assert kwargs["headers"] == {"Content-Type": BUILD_INFO_CONTENT_TYPE}
        sent = json.loads(kwargs["data"].decode("utf-8"))
        assert sent["name"] == "app"
        assert sent["vcsRevision"] == "abc"

    def test_send_build_info_requires_204(self, raw_client, session, build):
        """Test any other status fails."""
        session.request.side_effect = [
            version_response("2.6.0"),
            make_response(400, reason="Bad Request"),
        ]

        with pytest.raises(TransportError, match="HTTP response code: 400"):
            raw_client.send_build_info(build)

    def test_old_service_strips_unknown_properties(self, raw_client, session, build):
        """Test fields unknown to old services are removed."""
        raw_client._capabilities = ServiceCapabilities(ServiceVersion("2.2.2"))

        with patch.object(raw_client, "verify_compatible_version"):
            data = json.loads(raw_client.build_info_to_json(build))

        for field in ("buildAgent", "parentName", "parentNumber", "vcsRevision"):
            assert field not in data
        assert data["name"] == "app"

    def test_non_numeric_build_number_on_old_service(self, raw_client, session):
        """Test old services reject non-numeric build numbers."""
        session.request.return_value = version_response("2.2.3")
        build = BuildInfo(name="app", number="1.0-rc")

        with pytest.raises(VersionIncompatibleError, match="1.0-rc"):
            raw_client.build_info_to_json(build)

    def test_non_numeric_build_number_on_new_service(self, raw_client, session):
        """Test newer services accept non-numeric build numbers."""
        session.request.return_value = version_response("2.2.4")
        build = BuildInfo(name="app", number="1.0-rc")

        assert json.loads(raw_client.build_info_to_json(build))["number"] == "1.0-rc"

    def test_build_browse_url(self, raw_client, build):
        """Test web UI link of a build."""
        assert raw_client.build_browse_url(build) == (
            BASE_URL + "/webapp/builds/app/42/2024-01-01T10%3A00%3A00.000%2B0000/"
        )
