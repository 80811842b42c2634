"""Deployment orchestrator coordinating the publishing steps.

This module provides the high-level DeploymentOrchestrator that coordinates:
- prepare_deployable_artifacts: Joins build artifacts with deploy templates
- BuildInfoAggregator: Merges output of several agents
- DuplicateGate: Rejects the batch if any artifact already exists
- ChecksumDeployUploader: Uploads the artifacts
- ArtifactoryClient: Sends the build-info document
"""

import logging
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Callable, List, Mapping, Optional

from ...exceptions import DeploymentError, TransportError
from ...models.models import BuildInfo, DeployableArtifactSet, DeployDetail
from ...services.artifactory_client import ArtifactoryClient
from ...utils.checksums import ChecksumComputer
from .aggregator import AggregationResult, BuildInfoAggregator, save_build_info
from .deployables import prepare_deployable_artifacts
from .duplicate_gate import DuplicateGate, GateResult
from .patterns import IncludeExcludePatterns, path_conflicts
from .uploader import ChecksumDeployUploader, UploadResult

if TYPE_CHECKING:
    from ...config import Config

logger = logging.getLogger(__name__)

SKIPPED_REMAINDER = (
    "Skipping deployment of remaining artifacts (if any) and build info."
)


class DeploymentStage(str, Enum):
    """Ordered deployment stages."""

    ASSEMBLE = "assemble"
    AGGREGATE = "aggregate"
    GATE = "gate"
    UPLOAD = "upload"
    SEND_BUILD_INFO = "send_build_info"
    DONE = "done"

    @classmethod
    def ordered(cls) -> List["DeploymentStage"]:
        """Return stages in execution order."""
        return [
            cls.ASSEMBLE,
            cls.AGGREGATE,
            cls.GATE,
            cls.UPLOAD,
            cls.SEND_BUILD_INFO,
            cls.DONE,
        ]


@dataclass
class DeploymentResult:
    """Result of a deployment run."""

    deployables: DeployableArtifactSet = dataclass_field(
        default_factory=DeployableArtifactSet
    )
    build_info_file: Optional[Path] = None
    aggregation: Optional[AggregationResult] = None
    gate: Optional[GateResult] = None
    uploads: List[UploadResult] = dataclass_field(default_factory=list)
    skipped: List[str] = dataclass_field(default_factory=list)
    build_info_sent: bool = False
    stages: List[DeploymentStage] = dataclass_field(default_factory=list)

    @property
    def stopped_after(self) -> Optional[DeploymentStage]:
        """Last stage that was entered."""
        return self.stages[-1] if self.stages else None

    def enter(self, stage: DeploymentStage) -> None:
        """Record that a stage has started."""
        self.stages.append(stage)
        logger.debug("Deployment stage: %s", stage.value)

    def get_summary(self) -> dict:
        """Get summary of the deployment."""
        summary: dict = {
            "stages": [stage.value for stage in self.stages],
            "deployables": len(self.deployables),
            "uploaded": len(self.uploads),
            "checksum_deployed": sum(1 for u in self.uploads if u.checksum_deployed),
            "skipped": len(self.skipped),
            "build_info_sent": self.build_info_sent,
        }
        if self.build_info_file:
            summary["build_info_file"] = str(self.build_info_file)
        if self.aggregation:
            summary["aggregation"] = {
                "build_info_file": str(self.aggregation.build_info_file),
                "deployables_file": str(self.aggregation.deployables_file),
                "copied_files": self.aggregation.copied_files,
                "publish": self.aggregation.publish,
            }
        if self.gate:
            summary["duplicate_check"] = {
                "checked": len(self.gate.checked),
                "skipped": len(self.gate.skipped),
            }
        return summary


def client_from_config(config: "Config") -> ArtifactoryClient:
    """Create a repository service client from configuration."""
    return ArtifactoryClient(
        config.url,
        username=config.username,
        password=config.password,
        timeout=config.timeout,
    )


class DeploymentOrchestrator:
    """Orchestrates publishing of one build.

    Runs the deployment as a sequence of stages:
    1. Assemble the deployable artifacts and save the build info
    2. Aggregate with other agents' output (when configured)
    3. Check the whole batch for duplicates
    4. Upload the artifacts
    5. Send the build-info document
    """

    def __init__(
        self,
        client_factory: Optional[Callable[["Config"], ArtifactoryClient]] = None,
        checksum_computer: Optional[ChecksumComputer] = None,
    ) -> None:
        """Initialize deployment orchestrator.

        Args:
            client_factory: Creates the service client for a configuration;
                the client is closed when the deployment ends
            checksum_computer: Optional checksum computer
        """
        self.client_factory = client_factory or client_from_config
        self.checksum_computer = checksum_computer or ChecksumComputer()

    def deploy(
        self,
        build: BuildInfo,
        config: "Config",
        deploy_details: Mapping[str, DeployDetail],
        tests_failed: bool = False,
        basedir: Optional[Path] = None,
    ) -> DeploymentResult:
        """Publish a build's artifacts and build info.

        Args:
            build: Build-info document; receives the computed checksums
            config: Publisher configuration
            deploy_details: Deploy templates keyed by ``module:artifact`` id
            tests_failed: Whether the build's tests failed
            basedir: Build base directory for the default export file

        Returns:
            DeploymentResult with the stages entered

        Raises:
            DeployValidationError: If a deploy template is invalid
            AggregationIOError: If aggregation files cannot be handled
            DuplicateCheckError: If the duplicate search fails
            DuplicateConflictError: If any artifact already exists
            DeploymentError: If an upload or the build-info send fails
            VersionIncompatibleError: If the service cannot accept the build
        """
        result = DeploymentResult()

        result.enter(DeploymentStage.ASSEMBLE)
        deployables = prepare_deployable_artifacts(
            build, deploy_details, self.checksum_computer
        )
        result.deployables = deployables

        if config.publish_build_info or config.is_aggregating:
            result.build_info_file = save_build_info(
                build, config.export_file, basedir
            )

        build_to_send = build
        if config.is_aggregating:
            result.enter(DeploymentStage.AGGREGATE)
            aggregator = BuildInfoAggregator(
                config.aggregate_artifacts,
                copy_artifacts=config.copy_aggregated_artifacts,
                publish_artifacts=config.publish_aggregated_artifacts,
            )
            result.aggregation = aggregator.aggregate(
                result.build_info_file, deployables
            )
            if not result.aggregation.publish:
                logger.info(
                    "Artifacts and build info aggregated in '%s', "
                    "publishing is disabled",
                    aggregator.aggregate_dir,
                )
                return result
            deployables = result.aggregation.deployables
            result.deployables = deployables
            build_to_send = result.aggregation.build_info

        publish_allowed = config.even_unstable or not tests_failed
        deploy_artifacts = (
            config.publish_artifacts and bool(deployables) and publish_allowed
        )
        send_build_info = config.publish_build_info and publish_allowed

        if tests_failed and not config.even_unstable:
            logger.info("Tests failed, skipping artifacts and build info publishing")

        if not deploy_artifacts and not send_build_info:
            result.enter(DeploymentStage.DONE)
            return result

        client = self.client_factory(config)
        try:
            if deploy_artifacts:
                patterns = config.deploy_patterns()

                result.enter(DeploymentStage.GATE)
                result.gate = DuplicateGate(client, patterns).check(deployables)

                result.enter(DeploymentStage.UPLOAD)
                self._upload_all(client, deployables, patterns, result)

            if send_build_info:
                result.enter(DeploymentStage.SEND_BUILD_INFO)
                self._send_build_info(client, build_to_send)
                result.build_info_sent = True
        finally:
            client.close()

        result.enter(DeploymentStage.DONE)
        logger.info("Deployment finished: %s", result.get_summary())
        return result

    def _upload_all(
        self,
        client: ArtifactoryClient,
        deployables: DeployableArtifactSet,
        patterns: IncludeExcludePatterns,
        result: DeploymentResult,
    ) -> None:
        uploader = ChecksumDeployUploader(client, self.checksum_computer)
        logger.info("Deploying %d artifacts", len(deployables))
        for detail in deployables:
            if path_conflicts(detail.artifact_path, patterns):
                logger.info(
                    "Skipping the deployment of '%s' due to the defined "
                    "include-exclude patterns.",
                    detail.artifact_path,
                )
                result.skipped.append(detail.artifact_path)
                continue
            try:
                result.uploads.append(uploader.deploy(detail))
            except TransportError as e:
                raise DeploymentError(
                    f"Failed to deploy {detail.file} to repository "
                    f"'{detail.target_repository}': {e}. {SKIPPED_REMAINDER}"
                ) from e

    def _send_build_info(self, client: ArtifactoryClient, build: BuildInfo) -> None:
        try:
            client.send_build_info(build)
        except TransportError as e:
            raise DeploymentError(f"Could not publish build info: {e}") from e
