"""Pre-flight duplicate check for a deploy batch.

Every artifact that is not filtered out by the include/exclude patterns is
looked up in its target repository before anything is uploaded. The whole
batch is rejected if any artifact already exists there.
"""

import logging
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from typing import Iterable, List, Optional

from ...exceptions import DuplicateCheckError, DuplicateConflictError, TransportError
from ...models.models import DeployDetail
from ...services.artifactory_client import ArtifactoryClient
from .patterns import IncludeExcludePatterns, path_conflicts

logger = logging.getLogger(__name__)


@dataclass
class GateResult:
    """Outcome of a duplicate check pass."""

    checked: List[str] = dataclass_field(default_factory=list)
    skipped: List[str] = dataclass_field(default_factory=list)
    duplicates: List[DeployDetail] = dataclass_field(default_factory=list)

    @property
    def passed(self) -> bool:
        """True when no duplicate was found."""
        return not self.duplicates


class DuplicateGate:
    """All-or-nothing duplicate check for deployable artifacts."""

    def __init__(
        self,
        client: ArtifactoryClient,
        patterns: Optional[IncludeExcludePatterns] = None,
    ) -> None:
        """Initialize duplicate gate.

        Args:
            client: Repository service client
            patterns: Include/exclude patterns for artifact paths
        """
        self.client = client
        self.patterns = patterns

    def scan(self, deployables: Iterable[DeployDetail]) -> GateResult:
        """Check every artifact and collect the duplicates.

        Raises:
            DuplicateCheckError: If a search request fails; remaining
                artifacts are not checked
        """
        result = GateResult()
        for detail in deployables:
            if path_conflicts(detail.artifact_path, self.patterns):
                logger.info(
                    "Skipping the duplicate check of '%s' due to the defined "
                    "include-exclude patterns.",
                    detail.artifact_path,
                )
                result.skipped.append(detail.artifact_path)
                continue

            try:
                is_duplicate = self.client.check_duplicate_artifact(detail)
            except TransportError as e:
                raise DuplicateCheckError(
                    f"Error occurred while checking duplicate of {detail.file} "
                    f"in repository '{detail.target_repository}': {e}. "
                    "Skipping deployment of remaining artifacts (if any) "
                    "and build info.",
                    url=e.url,
                ) from e

            result.checked.append(detail.artifact_path)
            if is_duplicate:
                logger.warning(
                    "Duplicate found for %s in %s",
                    detail.file_name,
                    detail.target_repository,
                )
                result.duplicates.append(detail)

        return result

    def check(self, deployables: Iterable[DeployDetail]) -> GateResult:
        """Run the full scan and reject the batch if duplicates exist.

        Raises:
            DuplicateCheckError: If a search request fails
            DuplicateConflictError: If any artifact already exists, listing all
        """
        result = self.scan(deployables)
        if not result.passed:
            raise DuplicateConflictError(
                [(d.file.name, d.target_repository) for d in result.duplicates]
            )
        logger.info("No duplicates found in %d checked artifacts", len(result.checked))
        return result
