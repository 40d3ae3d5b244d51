"""Domain models for incremental schema code generation."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from schema_codegen.errors import ConfigError

_TASK_FIELDS = frozenset(
    {
        "source",
        "package_name",
        "binding_file",
        "catalog",
        "extension",
        "extension_args",
        "dependencies",
        "delete_dirs",
    },
)


class SourceSet(str, Enum):
    """Which generated source root the build writes into."""

    MAIN = "main"
    TEST = "test"


class TaskState(str, Enum):
    """Per-task lifecycle states."""

    RESOLVING = "resolving"
    EVALUATING = "evaluating"
    SKIPPED = "skipped"
    INVOKING = "invoking"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CLEANING = "cleaning"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class GenerationTask:
    """One configured schema-to-code generation unit."""

    source: str
    package_name: str | None = None
    binding_file: str | None = None
    catalog: str | None = None
    extension: bool = False
    extension_args: tuple[str, ...] = ()
    dependencies: tuple[Path, ...] = ()
    delete_dirs: tuple[Path, ...] = ()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, base_dir: Path) -> GenerationTask:
        """Build a task from one build-file entry; relative paths use ``base_dir``."""

        unknown = sorted(set(data) - _TASK_FIELDS)
        if unknown:
            raise ConfigError(f"Unknown task option(s): {', '.join(unknown)}")
        source = data.get("source")
        if not isinstance(source, str) or not source.strip():
            raise ConfigError("Every task requires a non-empty 'source' locator.")

        return cls(
            source=source.strip(),
            package_name=_optional_str(data, "package_name"),
            binding_file=_optional_str(data, "binding_file"),
            catalog=_optional_str(data, "catalog"),
            extension=bool(data.get("extension", False)),
            extension_args=tuple(str(arg) for arg in _list_option(data, "extension_args")),
            dependencies=tuple(
                _project_path(base_dir, value) for value in _list_option(data, "dependencies")
            ),
            delete_dirs=tuple(
                _project_path(base_dir, value) for value in _list_option(data, "delete_dirs")
            ),
        )


@dataclass(frozen=True, slots=True)
class ArtifactCoordinate:
    """Artifact identity: group, artifact and version."""

    group: str
    artifact: str
    version: str

    @classmethod
    def parse(cls, value: str) -> ArtifactCoordinate:
        parts = value.strip().split(":")
        if len(parts) < 3 or not all(part.strip() for part in parts[:3]):  # noqa: PLR2004
            raise ConfigError(
                f"Invalid extension coordinate {value!r}. Expected 'group:artifact:version'.",
            )
        group, artifact, version = (part.strip() for part in parts[:3])
        return cls(group=group, artifact=artifact, version=version)

    def __str__(self) -> str:
        return f"{self.group}:{self.artifact}:{self.version}"


@dataclass(frozen=True, slots=True)
class ResolvedArtifact:
    """Artifact coordinate plus its downloaded local file."""

    coordinate: ArtifactCoordinate
    path: Path


@dataclass(slots=True)
class MarkerRecord:
    """Last successful generation of one task; ``timestamp`` is None when absent."""

    key: str
    path: Path
    timestamp: float | None = None

    @property
    def exists(self) -> bool:
        return self.timestamp is not None


@dataclass(slots=True)
class InvocationResult:
    """Exit status and captured streams of one generator call."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.exit_code == 0


@dataclass(slots=True)
class TaskOutcome:
    """Terminal record of one task within a build."""

    task: GenerationTask
    state: TaskState
    marker_key: str
    reasons: tuple[str, ...] = ()
    exit_code: int | None = None
    cleanup_ok: bool = True


@dataclass(slots=True)
class BuildResult:
    """Aggregate over all tasks of one build."""

    outcomes: list[TaskOutcome] = field(default_factory=list)

    @property
    def generated(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.state == TaskState.SUCCEEDED)

    @property
    def skipped(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.state == TaskState.SKIPPED)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.state == TaskState.FAILED)

    @property
    def cleanup_failed(self) -> bool:
        return any(not outcome.cleanup_ok for outcome in self.outcomes)

    @property
    def success(self) -> bool:
        return not self.failed and not self.cleanup_failed


def _optional_str(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"Task option {key!r} must be a string, got {type(value).__name__}.")
    return value.strip() or None


def _list_option(data: Mapping[str, Any], key: str) -> list[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"Task option {key!r} must be a list.")
    return value


def _project_path(base_dir: Path, value: Any) -> Path:
    path = Path(str(value))
    return path if path.is_absolute() else base_dir / path
