"""Artifact upload with checksum deploy.

Uploads first try a checksum deploy: a body-less PUT carrying the artifact's
digests, which lets the server materialize content it already stores. When
that is not possible the file is uploaded in full. Servers older than the
checksum-header version also receive ``.sha1`` and ``.md5`` side files.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from ...exceptions import TransportError, UploadError
from ...models.models import DeployDetail
from ...services.artifactory_client import (
    UPLOAD_SUCCESS_CODES,
    ArtifactoryClient,
    matrix_params,
)
from ...utils.checksums import MD5, SHA1, ChecksumComputer

logger = logging.getLogger(__name__)

# Below this size the extra round-trip costs more than it saves
CHECKSUM_DEPLOY_MIN_FILE_SIZE = 10240


@dataclass
class UploadResult:
    """Result of deploying one artifact."""

    artifact_path: str
    url: str
    status_code: int
    checksum_deployed: bool = False
    checksum_files_uploaded: bool = False


class ChecksumDeployUploader:
    """Deploys artifacts to the repository service."""

    def __init__(
        self,
        client: ArtifactoryClient,
        checksum_computer: Optional[ChecksumComputer] = None,
        min_checksum_deploy_size: int = CHECKSUM_DEPLOY_MIN_FILE_SIZE,
    ) -> None:
        """Initialize uploader.

        Args:
            client: Repository service client
            checksum_computer: Used for digests missing on a deploy detail
            min_checksum_deploy_size: Smallest file size to try checksum deploy
        """
        self.client = client
        self.checksum_computer = checksum_computer or ChecksumComputer()
        self.min_checksum_deploy_size = min_checksum_deploy_size

    def deploy(self, detail: DeployDetail) -> UploadResult:
        """Deploy one artifact.

        Args:
            detail: Artifact to deploy

        Returns:
            UploadResult describing how the artifact was deployed

        Raises:
            UploadError: If the file cannot be read or the server rejects the
                upload or a checksum file
            TransportError: If the server cannot be reached
        """
        url = self.client.deployment_url(detail)
        logger.info("Deploying artifact: %s", url)

        try:
            result = self._try_checksum_deploy(detail, url)
            if result is None:
                result = self._upload_file(detail, url)
        except OSError as e:
            raise UploadError(f"Cannot read file {detail.file}: {e}", url=url) from e

        if not self.client.capabilities.derives_checksums_from_headers:
            self.upload_checksums(detail, url)
            result.checksum_files_uploaded = True

        return result

    def _headers(self, detail: DeployDetail) -> Dict[str, str]:
        headers = {}
        if detail.sha1:
            headers["X-Checksum-Sha1"] = detail.sha1
        if detail.md5:
            headers["X-Checksum-Md5"] = detail.md5
        return headers

    def _try_checksum_deploy(
        self, detail: DeployDetail, url: str
    ) -> Optional[UploadResult]:
        file_size = detail.file.stat().st_size
        if file_size < self.min_checksum_deploy_size:
            logger.debug(
                "Skipping checksum deploy of file size %d, "
                "falling back to regular deployment.",
                file_size,
            )
            return None

        if not self.client.capabilities.supports_checksum_deploy:
            logger.debug(
                "Repository service %s does not support checksum deploy",
                self.client.capabilities.version,
            )
            return None

        if not detail.sha1:
            logger.debug("No sha1 for %s, skipping checksum deploy", detail.file)
            return None

        headers = self._headers(detail)
        headers["X-Checksum-Deploy"] = "true"
        try:
            response = self.client.put(
                url + matrix_params(detail.properties), headers=headers
            )
        except TransportError as e:
            logger.debug(
                "Failed artifact checksum deploy of file %s : %s (%s)",
                detail.file,
                detail.sha1,
                e,
            )
            return None

        if response.status_code in UPLOAD_SUCCESS_CODES:
            logger.debug(
                "Successfully performed checksum deploy of file %s : %s",
                detail.file,
                detail.sha1,
            )
            return UploadResult(
                artifact_path=detail.artifact_path,
                url=url,
                status_code=response.status_code,
                checksum_deployed=True,
            )

        logger.debug(
            "Failed checksum deploy of checksum '%s' with statusCode: %d",
            detail.sha1,
            response.status_code,
        )
        return None

    def _upload_file(self, detail: DeployDetail, url: str) -> UploadResult:
        with open(detail.file, "rb") as body:
            response = self.client.put(
                url + matrix_params(detail.properties),
                data=body,
                headers=self._headers(detail),
            )
        self.client.check_status(
            response,
            f"Failed to deploy file {detail.file}:",
            expected=UPLOAD_SUCCESS_CODES,
            error_type=UploadError,
        )
        return UploadResult(
            artifact_path=detail.artifact_path,
            url=url,
            status_code=response.status_code,
        )

    def _checksums(self, detail: DeployDetail) -> Dict[str, str]:
        checksums = {MD5: detail.md5, SHA1: detail.sha1}
        missing = [name for name, value in checksums.items() if not value]
        if missing:
            try:
                checksums.update(self.checksum_computer.calculate(detail.file, missing))
            except OSError as e:
                raise UploadError(
                    f"Cannot calculate {', '.join(missing)} of {detail.file}: {e}"
                ) from e
        return checksums

    def upload_checksums(self, detail: DeployDetail, url: str) -> None:
        """Upload ``.sha1`` and ``.md5`` side files next to an artifact.

        Digests missing on the detail are computed from the file first.

        Raises:
            UploadError: If a side file is rejected
        """
        checksums = self._checksums(detail)
        properties = matrix_params(detail.properties)
        for name in (SHA1, MD5):
            logger.debug(
                "Uploading %s for file %s : %s",
                name.upper(),
                detail.file,
                checksums[name],
            )
            response = self.client.put(
                f"{url}.{name}{properties}", data=checksums[name].encode("utf-8")
            )
            self.client.check_status(
                response,
                f"Failed to deploy {name.upper()} checksum:",
                expected=UPLOAD_SUCCESS_CODES,
                error_type=UploadError,
            )
