"""HTTP client for the artifact repository service."""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union
from urllib.parse import quote

import requests

from ..exceptions import TransportError, VersionIncompatibleError
from ..models.models import BuildInfo, DeployDetail
from .versions import (
    MINIMAL_VERSION,
    NON_NUMERIC_BUILD_NUMBERS_TOLERANT_VERSION,
    ServiceCapabilities,
    ServiceVersion,
)

logger = logging.getLogger(__name__)

VERSION_REST_URL = "/api/system/version"
LOCAL_REPOS_REST_URL = "/api/repositories?type=local"
REMOTE_REPOS_REST_URL = "/api/repositories?type=remote"
VIRTUAL_REPOS_REST_URL = "/api/repositories?type=virtual"
SEARCH_ARTIFACT_REST_URL = "/api/search/artifact"
STORAGE_REST_URL = "/api/storage"
BUILD_REST_URL = "/api/build"
BUILD_BROWSE_URL = "/webapp/builds"

BUILD_INFO_CONTENT_TYPE = "application/vnd.org.jfrog.artifactory+json"

# Upload status codes accepted for backwards compatibility with older servers
UPLOAD_SUCCESS_CODES = (200, 201)


def encode_path(path: str) -> str:
    """Percent-encode a repository path, keeping the separators."""
    return quote(path, safe="/")


def matrix_params(properties: Optional[Mapping[str, Sequence[str]]]) -> str:
    """Build the ``;key=value`` suffix attaching properties to a deployment."""
    if not properties:
        return ""
    parts = []
    for key, values in properties.items():
        for value in values:
            parts.append(f";{quote(str(key), safe='')}={quote(str(value), safe='')}")
    return "".join(parts)


class ArtifactoryClient:
    """Client for the repository service REST API.

    Version information is requested lazily, once per client instance, and
    exposed as :class:`ServiceCapabilities`.
    """

    def __init__(
        self,
        url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 300,
        proxies: Optional[Dict[str, str]] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize client.

        Args:
            url: Base URL of the repository service
            username: Optional user for basic authentication
            password: Optional password for basic authentication
            timeout: Connect/response timeout in seconds
            proxies: Optional requests proxy mapping
            session: Optional pre-configured session (mainly for tests)
        """
        self.url = url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        if username:
            self.session.auth = (username, password or "")
        if proxies:
            self.session.proxies.update(proxies)
        self._capabilities: Optional[ServiceCapabilities] = None

    def __enter__(self) -> "ArtifactoryClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        """Release pooled connections."""
        self.session.close()

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        kwargs.setdefault("timeout", self.timeout)
        try:
            return self.session.request(method, url, **kwargs)
        except requests.exceptions.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}", url=url) from e

    def check_status(
        self,
        response: requests.Response,
        message: str,
        expected: Sequence[int] = (200,),
        error_type: type = TransportError,
    ) -> None:
        """Raise ``error_type`` unless the response status is expected."""
        if response.status_code not in expected:
            raise error_type(
                message,
                status_code=response.status_code,
                reason=response.reason,
                url=response.url,
            )

    def get_json(self, rest_url: str, message: str, **kwargs: Any) -> Any:
        """GET a REST resource and decode its JSON body."""
        url = self.url + rest_url
        logger.debug("Requesting %s", url)
        response = self._request("GET", url, **kwargs)
        self.check_status(response, message)
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"{message} invalid JSON from {url}", url=url) from e

    # Versions

    def get_version(self) -> ServiceVersion:
        """Request the service version.

        Returns:
            The reported version, or a not-found version on HTTP 404

        Raises:
            TransportError: On connection failure or unexpected status
        """
        url = self.url + VERSION_REST_URL
        response = self._request("GET", url)
        if response.status_code == 404:
            return ServiceVersion.not_found()
        self.check_status(response, "Failed to obtain version information:")
        try:
            data = response.json()
        except ValueError:
            data = None
        version = data.get("version") if isinstance(data, dict) else None
        return ServiceVersion(version) if version else ServiceVersion.not_found()

    @property
    def capabilities(self) -> ServiceCapabilities:
        """Capabilities of the service, resolved on first use."""
        if self._capabilities is None:
            try:
                version = self.get_version()
            except TransportError as e:
                logger.warning("Could not determine service version: %s", e)
                version = ServiceVersion.not_found()
            logger.debug("Repository service version: %s", version)
            self._capabilities = ServiceCapabilities(version)
        return self._capabilities

    def verify_compatible_version(self) -> ServiceVersion:
        """Ensure the service can be published to.

        Raises:
            VersionIncompatibleError: If no service answered or it is too old
        """
        try:
            version = self.get_version()
        except TransportError as e:
            raise VersionIncompatibleError(
                f"Error occurred while requesting version information: {e}"
            ) from e
        self._capabilities = ServiceCapabilities(version)
        if version.is_not_found:
            raise VersionIncompatibleError(
                "There is either an incompatible or no instance of the "
                f"repository service at {self.url}."
            )
        if not self._capabilities.is_compatible:
            raise VersionIncompatibleError(
                f"Repository service version {version} is not supported. "
                f"Version {MINIMAL_VERSION} or above is required."
            )
        return version

    # Repositories

    def _repository_keys(self, rest_url: str) -> List[str]:
        result = self.get_json(rest_url, "Failed to obtain list of repositories:")
        logger.debug("Repositories result = %s", result)
        return [repo["key"] for repo in result or [] if "key" in repo]

    def get_local_repositories_keys(self) -> List[str]:
        """List local repository keys."""
        return self._repository_keys(LOCAL_REPOS_REST_URL)

    def get_remote_repositories_keys(self) -> List[str]:
        """List remote repository keys."""
        return self._repository_keys(REMOTE_REPOS_REST_URL)

    def get_virtual_repositories_keys(self) -> List[str]:
        """List virtual repository keys."""
        return self._repository_keys(VIRTUAL_REPOS_REST_URL)

    def get_local_and_cache_repositories_keys(self) -> List[str]:
        """List local repositories followed by the caches of remote ones."""
        local = self.get_local_repositories_keys()
        remote = self.get_remote_repositories_keys()
        return local + [f"{key}-cache" for key in remote]

    # Artifacts

    def search_artifact(self, repository: str, name: str) -> List[Any]:
        """Search a repository for artifacts with the given file name."""
        result = self.get_json(
            SEARCH_ARTIFACT_REST_URL,
            "Failed to obtain list of duplicates:",
            params={"repos": repository, "name": name},
        )
        return list((result or {}).get("results") or [])

    def check_duplicate_artifact(self, detail: DeployDetail) -> bool:
        """Check whether the target repository already holds the file name.

        Raises:
            TransportError: If the search request fails
        """
        logger.info("Check for duplicate artifact: %s", detail.file_name)
        return bool(self.search_artifact(detail.target_repository, detail.file_name))

    def get_item_last_modified(self, path: str) -> Optional[str]:
        """Get the deep last-modified timestamp of a repository item."""
        result = self.get_json(
            f"{STORAGE_REST_URL}/{encode_path(path.lstrip('/'))}?lastModified&deep=1",
            "Failed to obtain item info:",
        )
        return (result or {}).get("lastModified")

    def deployment_url(self, detail: DeployDetail) -> str:
        """URL of an artifact in its target repository, without properties."""
        path = detail.artifact_path
        if not path.startswith("/"):
            path = "/" + path
        return f"{self.url}/{encode_path(detail.target_repository)}{encode_path(path)}"

    def put(
        self,
        url: str,
        data: Union[bytes, str, Any, None] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> requests.Response:
        """Issue a PUT request without checking its status."""
        return self._request("PUT", url, data=data, headers=dict(headers or {}))

    # Build info

    def build_info_to_json(self, build: BuildInfo) -> str:
        """Serialize a build-info document for this service version.

        Raises:
            VersionIncompatibleError: If the service cannot accept the document
        """
        self.verify_compatible_version()
        capabilities = self.capabilities
        document = build.model_copy(deep=True)

        if not capabilities.tolerates_unknown_properties:
            document.build_agent = None
            document.parent_name = None
            document.parent_number = None
            document.vcs_revision = None

        if not capabilities.tolerates_non_numeric_build_numbers:
            self._verify_numeric_build_number(document.number)
            self._verify_numeric_build_number(document.parent_number)

        return document.to_json()

    @staticmethod
    def _verify_numeric_build_number(build_number: Optional[str]) -> None:
        if build_number is None:
            return
        try:
            int(build_number)
        except ValueError:
            raise VersionIncompatibleError(
                f"Cannot handle build/parent build number: {build_number}. "
                "Non-numeric build numbers are supported by repository service "
                f"version {NON_NUMERIC_BUILD_NUMBERS_TOLERANT_VERSION} and above. "
                "Please upgrade the service or use numeric build numbers."
            ) from None

    def send_build_info(self, build: Union[BuildInfo, str]) -> None:
        """Publish a build-info document.

        Args:
            build: Build-info document, or its already serialized JSON

        Raises:
            TransportError: If the service does not answer 204
            VersionIncompatibleError: If the service cannot accept the document
        """
        body = build if isinstance(build, str) else self.build_info_to_json(build)
        url = self.url + BUILD_REST_URL
        logger.info("Deploying build info to: %s", url)
        response = self._request(
            "PUT",
            url,
            data=body.encode("utf-8"),
            headers={"Content-Type": BUILD_INFO_CONTENT_TYPE},
        )
        self.check_status(response, "Failed to send build info:", expected=(204,))

        if isinstance(build, BuildInfo):
            logger.info(
                "Build successfully deployed. Browse it under %s",
                self.build_browse_url(build),
            )

    def build_browse_url(self, build: BuildInfo) -> str:
        """Web UI URL of a published build."""
        return (
            f"{self.url}{BUILD_BROWSE_URL}/{quote(build.name, safe='')}/"
            f"{quote(build.number, safe='')}/{quote(build.started or '', safe='')}/"
        )
