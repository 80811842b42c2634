"""Aggregation of build info and deployables from several build agents.

Agents building parts of the same build share an aggregation directory. Each
agent merges its build-info document and its deployable artifacts into the
files already there:

    <aggregate_dir>/build-info.json    merged build-info document
    <aggregate_dir>/deployables.json   merged deployable artifact manifest

The read-merge-write sequence is not locked. Agents writing to the same
directory at the same time can lose each other's updates, so callers have to
run aggregating agents one after another.
"""

import json
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from ...exceptions import AggregationIOError, DeployValidationError
from ...models.models import BuildInfo, DeployableArtifactSet, DeployDetail

logger = logging.getLogger(__name__)

AGGREGATED_BUILD_INFO = "build-info.json"
AGGREGATED_DEPLOYABLES = "deployables.json"
DEFAULT_EXPORT_FILE = Path("target") / "build-info.json"


@dataclass
class AggregationResult:
    """Outcome of one aggregation step."""

    build_info: BuildInfo
    deployables: DeployableArtifactSet
    build_info_file: Path
    deployables_file: Path
    publish: bool
    copied_files: int = 0


def save_build_info(
    build: BuildInfo,
    export_file: Optional[Path] = None,
    basedir: Optional[Path] = None,
) -> Path:
    """Persist a build-info document as JSON.

    Args:
        build: Build-info document
        export_file: Target file; defaults to ``<basedir>/target/build-info.json``
        basedir: Build base directory (default: current directory)

    Returns:
        Resolved path of the written file

    Raises:
        AggregationIOError: If the file cannot be written
    """
    if export_file:
        target = Path(export_file)
    else:
        target = Path(basedir or ".") / DEFAULT_EXPORT_FILE
    target = target.resolve()
    logger.info("Saving Build Info to '%s'", target)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(build.to_json(), encoding="utf-8")
    except OSError as e:
        raise AggregationIOError(
            f"Error occurred while persisting Build Info to '{target}': {e}"
        ) from e
    return target


def merge_build_info(current: BuildInfo, previous: BuildInfo) -> BuildInfo:
    """Merge the current agent's document into the aggregated one.

    The merged document starts from ``current`` for pass-through fields, keeps
    the ``started`` timestamp of ``previous``, sums ``durationMillis`` and
    merges the modules of ``current`` into those of ``previous``.
    """
    merged = current.model_copy(deep=True)
    merged.started = previous.started
    merged.duration_millis = previous.duration_millis + current.duration_millis
    merged.modules = [m.model_copy(deep=True) for m in previous.modules]
    for module in current.modules:
        merged.add_module(module)
    return merged


def aggregated_file(aggregate_dir: Path, file: Path) -> Path:
    """Location of an artifact's copy inside the aggregation directory.

    Paths under the workspace (the aggregation directory's parent) keep their
    workspace-relative layout. Paths outside it are appended as they are.
    """
    workspace = aggregate_dir.resolve().parent.as_posix()
    artifact = Path(file).resolve().as_posix()
    if artifact.startswith(workspace + "/"):
        relative = artifact[len(workspace) + 1 :]
    else:
        relative = artifact.lstrip("/")
    return aggregate_dir / relative


class BuildInfoAggregator:
    """Merges build info and deployables into a shared directory."""

    def __init__(
        self,
        aggregate_dir: Path,
        copy_artifacts: bool = False,
        publish_artifacts: bool = False,
    ) -> None:
        """Initialize aggregator.

        Args:
            aggregate_dir: Shared aggregation directory
            copy_artifacts: Copy artifact files into the aggregation directory
            publish_artifacts: Return the merged deployables for publishing
        """
        self.aggregate_dir = Path(aggregate_dir)
        self.copy_artifacts = copy_artifacts
        self.publish_artifacts = publish_artifacts

    @property
    def build_info_file(self) -> Path:
        """Aggregated build-info document."""
        return self.aggregate_dir / AGGREGATED_BUILD_INFO

    @property
    def deployables_file(self) -> Path:
        """Aggregated deployables manifest."""
        return self.aggregate_dir / AGGREGATED_DEPLOYABLES

    def aggregate(
        self, build_info_source: Path, deployables: DeployableArtifactSet
    ) -> AggregationResult:
        """Merge one agent's output into the aggregation directory.

        Args:
            build_info_source: The agent's saved build-info file
            deployables: The agent's deployable artifacts

        Returns:
            AggregationResult; when publishing is enabled its deployables are
            rebuilt from the merged manifest

        Raises:
            AggregationIOError: If a file cannot be read, written or copied
        """
        try:
            self.aggregate_dir.mkdir(parents=True, exist_ok=True)
            # Both merges are computed before either file is written
            build_info, merged_build_info = self._merge_build_info(
                Path(build_info_source)
            )
            records = self._merge_deployables(deployables)
            if merged_build_info:
                self.build_info_file.write_text(
                    build_info.to_json(), encoding="utf-8"
                )
            else:
                shutil.copyfile(build_info_source, self.build_info_file)
            self.deployables_file.write_text(
                json.dumps(records, indent=2), encoding="utf-8"
            )
            copied = self._copy_artifacts(deployables) if self.copy_artifacts else 0
            merged = self._convert_deployables(records)
        except OSError as e:
            raise AggregationIOError(
                f"Failed to aggregate artifacts and Build Info in "
                f"[{self.aggregate_dir}]: {e}"
            ) from e

        return AggregationResult(
            build_info=build_info,
            deployables=merged if self.publish_artifacts else deployables,
            build_info_file=self.build_info_file,
            deployables_file=self.deployables_file,
            publish=self.publish_artifacts,
            copied_files=copied,
        )

    def load_build_info(self) -> BuildInfo:
        """Load the aggregated build-info document."""
        return self._read_build_info(self.build_info_file)

    def _read_build_info(self, path: Path) -> BuildInfo:
        try:
            return BuildInfo.from_file(path)
        except (ValueError, ValidationError) as e:
            raise AggregationIOError(f"Invalid build info in '{path}': {e}") from e

    def _read_records(self, path: Path) -> List[Dict[str, Any]]:
        try:
            records = json.loads(path.read_text(encoding="utf-8"))
        except ValueError as e:
            raise AggregationIOError(f"Invalid deployables in '{path}': {e}") from e
        if not isinstance(records, list):
            raise AggregationIOError(f"Invalid deployables in '{path}': not a list")
        return records

    def _merge_build_info(self, source: Path) -> Tuple[BuildInfo, bool]:
        current = self._read_build_info(source)
        if not self.build_info_file.is_file():
            logger.info("Creating aggregated build info '%s'", self.build_info_file)
            return current, False

        merged = merge_build_info(current, self.load_build_info())
        logger.info(
            "Merging build info into '%s' (durationMillis=%d)",
            self.build_info_file,
            merged.duration_millis,
        )
        return merged, True

    def _merge_deployables(
        self, deployables: DeployableArtifactSet
    ) -> List[Dict[str, Any]]:
        current = deployables.to_records()
        if not self.deployables_file.is_file():
            logger.info("Creating aggregated deployables '%s'", self.deployables_file)
            return current

        by_path: Dict[str, Dict[str, Any]] = {}
        for record in self._read_records(self.deployables_file):
            by_path[record.get("artifactPath")] = record
        # Current agent's records win
        for record in current:
            by_path[record["artifactPath"]] = record
        records = list(by_path.values())
        logger.info(
            "Merging %d deployables into '%s' (%d total)",
            len(current),
            self.deployables_file,
            len(records),
        )
        return records

    def _copy_artifacts(self, deployables: DeployableArtifactSet) -> int:
        copied = 0
        for detail in deployables:
            # Jar checksums rarely match between builds, so always copy
            target = aggregated_file(self.aggregate_dir, detail.file)
            if target.resolve() == detail.file.resolve():
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(detail.file, target)
            logger.debug("Copied %s to %s", detail.file, target)
            copied += 1
        return copied

    def _convert_deployables(
        self, records: List[Dict[str, Any]]
    ) -> DeployableArtifactSet:
        result = DeployableArtifactSet()
        if not self.publish_artifacts:
            return result
        for record in records:
            file = Path(record.get("file") or "")
            if self.copy_artifacts:
                file = aggregated_file(self.aggregate_dir, file)
            try:
                result.update(DeployDetail.from_record(record, file=file))
            except DeployValidationError as e:
                raise AggregationIOError(
                    f"Cannot restore aggregated artifact "
                    f"'{record.get('artifactPath')}': {e}"
                ) from e
        return result
