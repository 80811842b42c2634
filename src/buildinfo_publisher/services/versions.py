"""Repository service versions and the capabilities they imply."""

import re
from dataclasses import dataclass
from typing import Optional, Tuple

_NUMERIC_VERSION = re.compile(r"^(\d+)(?:\.(\d+))?(?:\.(\d+))?")


@dataclass(frozen=True)
class ServiceVersion:
    """Version reported by the repository service.

    ``raw=None`` means the version endpoint was not found. A version string
    that does not start with a number (development builds) is treated as
    newer than any released version.
    """

    raw: Optional[str]

    @classmethod
    def not_found(cls) -> "ServiceVersion":
        """Version of a service that did not report one."""
        return cls(None)

    @property
    def is_not_found(self) -> bool:
        """Whether the service did not report a version."""
        return self.raw is None

    @property
    def is_development(self) -> bool:
        """Whether the version is a development or snapshot build."""
        if self.raw is None:
            return False
        return "SNAPSHOT" in self.raw.upper() or self._parts() is None

    def _parts(self) -> Optional[Tuple[int, int, int]]:
        match = _NUMERIC_VERSION.match((self.raw or "").strip())
        if not match:
            return None
        return tuple(int(g or 0) for g in match.groups())  # type: ignore[return-value]

    def is_at_least(self, other: "ServiceVersion") -> bool:
        """Compare against a released version."""
        if self.is_not_found:
            return False
        if self.is_development:
            return True
        mine = self._parts()
        theirs = other._parts()
        if mine is None or theirs is None:
            return False
        return mine >= theirs

    def __str__(self) -> str:
        return self.raw if self.raw is not None else "NOT_FOUND"


MINIMAL_VERSION = ServiceVersion("2.2.3")
UNKNOWN_PROPERTIES_TOLERANT_VERSION = ServiceVersion("2.2.3")
NON_NUMERIC_BUILD_NUMBERS_TOLERANT_VERSION = ServiceVersion("2.2.4")
CHECKSUM_HEADERS_VERSION = ServiceVersion("2.3.2")
CHECKSUM_DEPLOY_VERSION = ServiceVersion("2.5.1")


@dataclass(frozen=True)
class ServiceCapabilities:
    """Features supported by one repository service instance."""

    version: ServiceVersion

    @property
    def is_compatible(self) -> bool:
        """Service is reachable and at least the minimal supported version."""
        return not self.version.is_not_found and self.version.is_at_least(
            MINIMAL_VERSION
        )

    @property
    def tolerates_unknown_properties(self) -> bool:
        """Build-info documents may carry fields the service does not know."""
        return self.version.is_at_least(UNKNOWN_PROPERTIES_TOLERANT_VERSION)

    @property
    def tolerates_non_numeric_build_numbers(self) -> bool:
        """Build and parent build numbers may be non-numeric."""
        return self.version.is_at_least(NON_NUMERIC_BUILD_NUMBERS_TOLERANT_VERSION)

    @property
    def derives_checksums_from_headers(self) -> bool:
        """Upload checksum headers replace separate .sha1/.md5 files."""
        return self.version.is_at_least(CHECKSUM_HEADERS_VERSION)

    @property
    def supports_checksum_deploy(self) -> bool:
        """Artifacts can be deployed by checksum alone."""
        return self.version.is_at_least(CHECKSUM_DEPLOY_VERSION)
