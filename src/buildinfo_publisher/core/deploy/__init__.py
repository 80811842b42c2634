"""Artifact deployment workflow."""

from .aggregator import AggregationResult, BuildInfoAggregator, save_build_info
from .deployables import prepare_deployable_artifacts
from .duplicate_gate import DuplicateGate, GateResult
from .orchestrator import DeploymentOrchestrator, DeploymentResult, DeploymentStage
from .patterns import IncludeExcludePatterns, path_conflicts
from .uploader import ChecksumDeployUploader, UploadResult

__all__ = [
    "AggregationResult",
    "BuildInfoAggregator",
    "ChecksumDeployUploader",
    "DeploymentOrchestrator",
    "DeploymentResult",
    "DeploymentStage",
    "DuplicateGate",
    "GateResult",
    "IncludeExcludePatterns",
    "UploadResult",
    "path_conflicts",
    "prepare_deployable_artifacts",
    "save_build_info",
]
