"""Exceptions raised by the build-info publisher."""

from typing import List, Optional, Tuple


class PublisherError(Exception):
    """Base class for all publisher errors."""


class DeployValidationError(PublisherError, ValueError):
    """Raised when a deploy request is malformed (missing file, blank path)."""


class TransportError(PublisherError):
    """Raised when an HTTP call fails or returns an unexpected status."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
        url: Optional[str] = None,
    ) -> None:
        """Initialize transport error.

        Args:
            message: Human readable description
            status_code: HTTP status code, if a response was received
            reason: HTTP reason phrase, if a response was received
            url: Request URL
        """
        self.status_code = status_code
        self.reason = reason
        self.url = url
        if status_code is not None:
            message = (
                f"{message} HTTP response code: {status_code}. "
                f"HTTP response message: {reason}"
            )
        super().__init__(message)


class UploadError(TransportError):
    """Raised when an artifact or checksum upload is rejected."""


class DuplicateCheckError(TransportError):
    """Raised when the duplicate search itself fails."""


class DuplicateConflictError(PublisherError):
    """Raised when target artifacts already exist in the repository."""

    def __init__(self, duplicates: List[Tuple[str, str]]) -> None:
        """Initialize duplicate conflict error.

        Args:
            duplicates: (file name, target repository) pairs
        """
        self.duplicates = duplicates
        lines = ["The following artifacts have duplicates in the target repo:"]
        lines.extend(f"{name}, repo: {repo}" for name, repo in duplicates)
        lines.append("Skipping deployment of artifacts (if any) and build info.")
        super().__init__("\n".join(lines))


class VersionIncompatibleError(PublisherError):
    """Raised when the repository service version cannot handle a request."""


class AggregationIOError(PublisherError):
    """Raised when the aggregation directory cannot be read or written."""


class DeploymentError(PublisherError):
    """Raised when a deploy call fails after the duplicate gate passed."""
