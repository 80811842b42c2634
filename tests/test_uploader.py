"""Tests for ChecksumDeployUploader."""

import hashlib

import pytest
import requests

from buildinfo_publisher.core.deploy.uploader import (
    CHECKSUM_DEPLOY_MIN_FILE_SIZE,
    ChecksumDeployUploader,
)
from buildinfo_publisher.exceptions import UploadError

from .helpers import BASE_URL, make_client, make_response

SMALL = 1024
LARGE = 15 * 1024


def put_calls(client):
    """(url, kwargs) of every PUT sent through the fake session."""
    return [
        (call[0][1], call[1])
        for call in client.session.request.call_args_list
        if call[0][0] == "PUT"
    ]


class TestChecksumDeploy:
    """Test when checksum deploy is attempted."""

    def test_large_file_on_new_service(self, make_detail):
        """Test a 15 KiB artifact on 2.6.0 is deployed by checksum only."""
        client = make_client("2.6.0")
        client.session.request.return_value = make_response(200)
        detail = make_detail("lib/a-1.0.jar", size=LARGE, sha1="s1", md5="m5")

        result = ChecksumDeployUploader(client).deploy(detail)

        calls = put_calls(client)
        assert len(calls) == 1
        url, kwargs = calls[0]
        assert url == BASE_URL + "/libs-release/lib/a-1.0.jar"
        assert kwargs["data"] is None
        assert kwargs["headers"] == {
            "X-Checksum-Sha1": "s1",
            "X-Checksum-Md5": "m5",
            "X-Checksum-Deploy": "true",
        }
        assert result.checksum_deployed is True
        assert result.status_code == 200

    def test_small_file_uploaded_in_full(self, make_detail):
        """Test files below the threshold skip checksum deploy."""
        client = make_client("2.6.0")
        detail = make_detail("lib/a.jar", size=SMALL, sha1="s1", md5="m5")

        result = ChecksumDeployUploader(client).deploy(detail)

        calls = put_calls(client)
        assert len(calls) == 1
        assert "X-Checksum-Deploy" not in calls[0][1]["headers"]
        assert calls[0][1]["data"] is not None
        assert result.checksum_deployed is False

    def test_threshold_is_inclusive(self, make_detail):
        """Test a file exactly at the threshold tries checksum deploy."""
        client = make_client("2.6.0")
        detail = make_detail(
            "lib/a.jar", size=CHECKSUM_DEPLOY_MIN_FILE_SIZE, sha1="s1", md5="m5"
        )

        result = ChecksumDeployUploader(client).deploy(detail)

        assert result.checksum_deployed is True

    def test_old_service_uploads_in_full(self, make_detail):
        """Test services below 2.5.1 never see a checksum deploy."""
        client = make_client("2.5.0")
        detail = make_detail("lib/a.jar", size=LARGE, sha1="s1", md5="m5")

        result = ChecksumDeployUploader(client).deploy(detail)

        calls = put_calls(client)
        assert len(calls) == 1
        assert "X-Checksum-Deploy" not in calls[0][1]["headers"]
        assert result.checksum_deployed is False

    def test_missing_sha1_uploads_in_full(self, make_detail):
        """Test no checksum deploy without a sha1."""
        client = make_client("2.6.0")
        detail = make_detail("lib/a.jar", size=LARGE)

        ChecksumDeployUploader(client).deploy(detail)

        calls = put_calls(client)
        assert len(calls) == 1
        assert calls[0][1]["headers"] == {}

    def test_unknown_content_falls_back(self, make_detail):
        """Test a rejected checksum deploy falls back to the full upload."""
        client = make_client("2.6.0")
        client.session.request.side_effect = [
            make_response(404, reason="Not Found"),
            make_response(201, reason="Created"),
        ]
        detail = make_detail("lib/a.jar", size=LARGE, sha1="s1", md5="m5")

        result = ChecksumDeployUploader(client).deploy(detail)

        calls = put_calls(client)
        assert len(calls) == 2
        assert calls[0][1]["headers"]["X-Checksum-Deploy"] == "true"
        assert "X-Checksum-Deploy" not in calls[1][1]["headers"]
        assert calls[1][1]["data"] is not None
        assert result.checksum_deployed is False
        assert result.status_code == 201

    def test_transport_failure_falls_back(self, make_detail):
        """Test a failed checksum deploy request falls back."""
        client = make_client("2.6.0")
        client.session.request.side_effect = [
            requests.exceptions.ConnectionError("reset"),
            make_response(201),
        ]
        detail = make_detail("lib/a.jar", size=LARGE, sha1="s1", md5="m5")

        result = ChecksumDeployUploader(client).deploy(detail)

        assert len(put_calls(client)) == 2
        assert result.checksum_deployed is False


class TestFullUpload:
    """Test the full-body upload."""

    def test_streams_file_with_properties(self, make_detail):
        """Test the file body and matrix params are sent."""
        client = make_client("2.6.0")
        detail = make_detail(
            "lib/a.jar", size=SMALL, sha1="s1", properties={"build.name": ["app"]}
        )

        ChecksumDeployUploader(client).deploy(detail)

        url, kwargs = put_calls(client)[0]
        assert url == BASE_URL + "/libs-release/lib/a.jar;build.name=app"
        assert kwargs["data"].name == str(detail.file)

    @pytest.mark.parametrize("status", [200, 201])
    def test_success_codes(self, make_detail, status):
        """Test 200 and 201 are both accepted."""
        client = make_client("2.6.0")
        client.session.request.return_value = make_response(status)

        result = ChecksumDeployUploader(client).deploy(make_detail("lib/a.jar"))

        assert result.status_code == status

    def test_rejected_upload(self, make_detail):
        """Test other status codes raise UploadError with code and reason."""
        client = make_client("2.6.0")
        client.session.request.return_value = make_response(
            403, reason="Forbidden"
        )

        with pytest.raises(UploadError) as exc_info:
            ChecksumDeployUploader(client).deploy(make_detail("lib/a.jar"))

        assert exc_info.value.status_code == 403
        assert "Forbidden" in str(exc_info.value)
        assert "a.jar" in str(exc_info.value)

    def test_unreadable_file(self, make_detail):
        """Test a vanished artifact file raises UploadError without a request."""
        client = make_client("2.6.0")
        detail = make_detail("lib/a.jar", size=LARGE, sha1="s1")
        detail.file.unlink()

        with pytest.raises(UploadError, match="Cannot read file") as exc_info:
            ChecksumDeployUploader(client).deploy(detail)

        assert isinstance(exc_info.value.__cause__, OSError)
        assert put_calls(client) == []


class TestChecksumFiles:
    """Test side files for services without checksum headers."""

    def test_side_files_for_old_service(self, make_detail):
        """Test .sha1 and .md5 follow the artifact with matrix params last."""
        client = make_client("2.3.1")
        detail = make_detail(
            "lib/a.jar",
            size=SMALL,
            sha1="s1",
            md5="m5",
            properties={"k": ["v"]},
        )

        result = ChecksumDeployUploader(client).deploy(detail)

        urls = [url for url, _ in put_calls(client)]
        artifact_url = BASE_URL + "/libs-release/lib/a.jar"
        assert urls == [
            artifact_url + ";k=v",
            artifact_url + ".sha1;k=v",
            artifact_url + ".md5;k=v",
        ]
        bodies = [kwargs["data"] for _, kwargs in put_calls(client)[1:]]
        assert bodies == [b"s1", b"m5"]
        assert result.checksum_files_uploaded is True

    def test_missing_checksums_computed(self, make_detail):
        """Test blank digests are computed before upload."""
        client = make_client("2.3.1")
        detail = make_detail("lib/a.jar", size=SMALL)
        content = detail.file.read_bytes()

        ChecksumDeployUploader(client).deploy(detail)

        bodies = [kwargs["data"] for _, kwargs in put_calls(client)[1:]]
        assert bodies == [
            hashlib.sha1(content).hexdigest().encode("utf-8"),
            hashlib.md5(content).hexdigest().encode("utf-8"),
        ]

    def test_no_side_files_for_new_service(self, make_detail):
        """Test services deriving checksums from headers get no side files."""
        client = make_client("2.3.2")

        result = ChecksumDeployUploader(client).deploy(make_detail("lib/a.jar"))

        assert len(put_calls(client)) == 1
        assert result.checksum_files_uploaded is False

    def test_rejected_side_file(self, make_detail):
        """Test a rejected checksum file raises UploadError."""
        client = make_client("2.3.1")
        client.session.request.side_effect = [
            make_response(201),
            make_response(500, reason="Server Error"),
        ]

        with pytest.raises(UploadError, match="SHA1"):
            ChecksumDeployUploader(client).deploy(
                make_detail("lib/a.jar", sha1="s1", md5="m5")
            )
