"""Data models for the build-info publisher."""

import copy
import json
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..exceptions import DeployValidationError

PropertyValues = Union[str, Iterable[str]]


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


class Artifact(BaseModel):
    """An artifact produced by a build module."""

    name: str
    type: Optional[str] = None
    md5: Optional[str] = None
    sha1: Optional[str] = None
    properties: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="allow")

    @property
    def has_checksums(self) -> bool:
        """Whether either digest is already known."""
        return not (_is_blank(self.md5) and _is_blank(self.sha1))


class Dependency(BaseModel):
    """A dependency resolved by a build module."""

    id: str
    type: Optional[str] = None
    scopes: List[str] = []
    md5: Optional[str] = None
    sha1: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class Module(BaseModel):
    """A build module with its artifacts and dependencies."""

    id: str
    artifacts: Optional[List[Artifact]] = None
    dependencies: Optional[List[Dependency]] = None

    model_config = ConfigDict(extra="allow")

    def find_artifact(self, name: str) -> Optional[Artifact]:
        """Find an artifact by name."""
        return next((a for a in self.artifacts or [] if a.name == name), None)

    def find_dependency(self, dependency_id: str) -> Optional[Dependency]:
        """Find a dependency by id."""
        return next(
            (d for d in self.dependencies or [] if d.id == dependency_id), None
        )

    def merge(self, other: "Module") -> None:
        """Merge another agent's view of the same module into this one.

        Artifacts are matched by name. An existing artifact keeps its checksums
        and properties once it has an md5 or sha1; otherwise it takes the
        incoming values. Dependencies are matched by id and their scopes are
        unioned.
        """
        self._merge_artifacts(other.artifacts)
        self._merge_dependencies(other.dependencies)

    def _merge_artifacts(self, incoming: Optional[List[Artifact]]) -> None:
        if not self.artifacts:
            if incoming is not None:
                self.artifacts = [a.model_copy(deep=True) for a in incoming]
            return
        if not incoming:
            return

        for artifact in incoming:
            found = self.find_artifact(artifact.name)
            if found is None:
                self.artifacts.append(artifact.model_copy(deep=True))
            elif not found.has_checksums:
                found.type = artifact.type
                found.md5 = artifact.md5
                found.sha1 = artifact.sha1
                found.properties = copy.deepcopy(artifact.properties)

    def _merge_dependencies(self, incoming: Optional[List[Dependency]]) -> None:
        if not self.dependencies:
            if incoming is not None:
                self.dependencies = [d.model_copy(deep=True) for d in incoming]
            return
        if not incoming:
            return

        for dependency in incoming:
            found = self.find_dependency(dependency.id)
            if found is None:
                self.dependencies.append(dependency.model_copy(deep=True))
                continue
            for scope in dependency.scopes:
                if scope not in found.scopes:
                    found.scopes.append(scope)


class BuildInfo(BaseModel):
    """Build-information document.

    Only the fields the publisher has to read or merge are typed; every other
    field of the JSON document is kept as an extra and written back verbatim.
    """

    name: str
    number: str
    started: Optional[str] = None
    duration_millis: int = Field(default=0, alias="durationMillis")
    modules: List[Module] = []
    parent_name: Optional[str] = Field(default=None, alias="parentName")
    parent_number: Optional[str] = Field(default=None, alias="parentNumber")
    build_agent: Optional[Dict[str, Any]] = Field(default=None, alias="buildAgent")
    vcs_revision: Optional[str] = Field(default=None, alias="vcsRevision")

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @field_validator("number", "parent_number", mode="before")
    @classmethod
    def validate_number(cls, v: Any) -> Optional[str]:
        """Accept numeric build numbers."""
        if v is not None:
            return str(v)
        return v

    def find_module(self, module_id: str) -> Optional[Module]:
        """Find a module by id."""
        return next((m for m in self.modules if m.id == module_id), None)

    def add_module(self, module: Module) -> None:
        """Add a module, merging it into an existing module with the same id."""
        existing = self.find_module(module.id)
        if existing is None:
            self.modules.append(module.model_copy(deep=True))
        else:
            existing.merge(module)

    def to_json(self) -> str:
        """Serialize to the JSON wire format."""
        return json.dumps(self.to_dict(), indent=2)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dictionary."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")

    @classmethod
    def from_json(cls, text: str) -> "BuildInfo":
        """Parse a JSON build-info document."""
        return cls.model_validate_json(text)

    @classmethod
    def from_file(cls, path: Path) -> "BuildInfo":
        """Load a JSON build-info document from a file."""
        return cls.from_json(Path(path).read_text(encoding="utf-8"))


def artifact_id(module_id: str, artifact_name: str) -> str:
    """Key joining a module's artifact to its deploy template."""
    return f"{module_id}:{artifact_name}"


def _to_multimap(
    properties: Optional[Mapping[str, PropertyValues]],
) -> Dict[str, List[str]]:
    multimap: Dict[str, List[str]] = {}
    for key, values in (properties or {}).items():
        if isinstance(values, str):
            values = [values]
        multimap.setdefault(key, []).extend(str(v) for v in values)
    return multimap


@dataclass(eq=False)
class DeployDetail:
    """A single artifact deploy request.

    Identity is the artifact path alone: two details with the same path are
    the same deployable even if their repository, file or checksums differ.
    """

    target_repository: str
    artifact_path: str
    file: Path
    md5: Optional[str] = None
    sha1: Optional[str] = None
    properties: Dict[str, List[str]] = dataclass_field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate the request before any network call is made."""
        self.file = Path(self.file) if self.file else None
        if self.file is None or not self.file.is_file():
            raise DeployValidationError(f"File not found: {self.file}")
        if _is_blank(self.target_repository):
            raise DeployValidationError("Target repository cannot be empty")
        if _is_blank(self.artifact_path):
            raise DeployValidationError("Artifact path cannot be empty")
        self.properties = _to_multimap(self.properties)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DeployDetail):
            return NotImplemented
        return self.artifact_path == other.artifact_path

    def __hash__(self) -> int:
        return hash(self.artifact_path)

    @property
    def file_name(self) -> str:
        """Last segment of the artifact path."""
        return self.artifact_path.rsplit("/", 1)[-1]

    def with_changes(self, **changes: Any) -> "DeployDetail":
        """Return a copy with some fields replaced."""
        values = {
            "target_repository": self.target_repository,
            "artifact_path": self.artifact_path,
            "file": self.file,
            "md5": self.md5,
            "sha1": self.sha1,
            "properties": {k: list(v) for k, v in self.properties.items()},
        }
        values.update(changes)
        return DeployDetail(**values)

    def to_record(self) -> Dict[str, Any]:
        """Manifest record written to the aggregation directory."""
        return {
            "artifactPath": self.artifact_path,
            "file": str(self.file.resolve()),
            "targetRepository": self.target_repository,
            "sha1": self.sha1,
            "md5": self.md5,
            "properties": {k: list(v) for k, v in self.properties.items()},
        }

    @classmethod
    def from_record(
        cls, record: Mapping[str, Any], file: Optional[Path] = None
    ) -> "DeployDetail":
        """Rehydrate a deploy request from a manifest record.

        Args:
            record: Manifest record
            file: Optional replacement for the recorded file path
        """
        return cls(
            target_repository=record.get("targetRepository"),
            artifact_path=record.get("artifactPath"),
            file=file if file is not None else record.get("file"),
            md5=record.get("md5"),
            sha1=record.get("sha1"),
            properties=record.get("properties") or {},
        )


class DeployableArtifactSet:
    """Insertion-ordered set of deploy requests keyed by artifact path."""

    def __init__(self, details: Optional[Iterable[DeployDetail]] = None) -> None:
        """Initialize the set, collapsing duplicates by path."""
        self._details: Dict[str, DeployDetail] = {}
        for detail in details or []:
            self.add(detail)

    def add(self, detail: DeployDetail) -> bool:
        """Add a detail unless its path is already present.

        Returns:
            True if the detail was added
        """
        if detail.artifact_path in self._details:
            return False
        self._details[detail.artifact_path] = detail
        return True

    def update(self, detail: DeployDetail) -> None:
        """Insert or replace the detail stored under its path."""
        self._details[detail.artifact_path] = detail

    def get(self, artifact_path: str) -> Optional[DeployDetail]:
        """Look up a detail by artifact path."""
        return self._details.get(artifact_path)

    def to_records(self) -> List[Dict[str, Any]]:
        """Serialize to manifest records."""
        return [detail.to_record() for detail in self]

    def __contains__(self, item: object) -> bool:
        if isinstance(item, DeployDetail):
            return item.artifact_path in self._details
        return item in self._details

    def __iter__(self) -> Iterator[DeployDetail]:
        return iter(list(self._details.values()))

    def __len__(self) -> int:
        return len(self._details)

    def __bool__(self) -> bool:
        return bool(self._details)

    def __repr__(self) -> str:
        return f"DeployableArtifactSet({list(self._details)})"
