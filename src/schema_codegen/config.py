"""Runtime configuration and build-file loading."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

from schema_codegen.build.models import GenerationTask, SourceSet
from schema_codegen.errors import ConfigError
from schema_codegen.generator.cli_backend import DEFAULT_GENERATOR_COMMAND
from schema_codegen.repository.maven import MAVEN_CENTRAL

DEFAULT_BUILD_FILE = Path("schema-codegen.json")
MARKER_DIR_NAME = "schema-codegen-markers"


@dataclass(slots=True)
class BuildSettings:
    """Project layout and generator invocation settings."""

    project_dir: Path = Path()
    build_dir: Path | None = None
    output_dir: Path | None = None
    marker_dir: Path | None = None
    generator_command: str = DEFAULT_GENERATOR_COMMAND
    resource_path: tuple[Path, ...] = ()
    fail_on_error: bool = True

    def resolved_build_dir(self) -> Path:
        return self.build_dir if self.build_dir is not None else self.project_dir / "build"

    def resolved_marker_dir(self) -> Path:
        if self.marker_dir is not None:
            return self.marker_dir
        return self.resolved_build_dir() / MARKER_DIR_NAME

    def output_dir_for(self, source_set: SourceSet) -> Path:
        """Explicit output directory, else the generated root of ``source_set``."""

        if self.output_dir is not None:
            return self.output_dir
        return self.resolved_build_dir() / "generated" / "src" / source_set.value / "java"


@dataclass(slots=True)
class RepositorySettings:
    """Extension artifact repository settings."""

    local_dir: Path = field(default_factory=lambda: Path.home() / ".m2" / "repository")
    remote_urls: tuple[str, ...] = (MAVEN_CENTRAL,)


@dataclass(slots=True)
class HttpSettings:
    """HTTP client settings for probes and downloads."""

    timeout_seconds: float = 30.0
    max_retries: int = 3


@dataclass(slots=True)
class Settings:
    """Application settings grouped by concern."""

    build_file: Path = DEFAULT_BUILD_FILE
    build: BuildSettings = field(default_factory=BuildSettings)
    repository: RepositorySettings = field(default_factory=RepositorySettings)
    http: HttpSettings = field(default_factory=HttpSettings)

    @classmethod
    def from_env(cls, build_file: Path | None = None) -> Settings:
        """Load settings from environment with defaults for local builds."""

        project_dir = Path(os.getenv("SCHEMA_CODEGEN_PROJECT_DIR", "."))
        settings = cls(
            build_file=build_file
            or Path(os.getenv("SCHEMA_CODEGEN_BUILD_FILE", str(DEFAULT_BUILD_FILE))),
            build=BuildSettings(
                project_dir=project_dir,
                build_dir=_env_path("SCHEMA_CODEGEN_BUILD_DIR"),
                output_dir=_env_path("SCHEMA_CODEGEN_OUTPUT_DIR"),
                marker_dir=_env_path("SCHEMA_CODEGEN_MARKER_DIR"),
                generator_command=os.getenv(
                    "SCHEMA_CODEGEN_GENERATOR_COMMAND",
                    DEFAULT_GENERATOR_COMMAND,
                ),
                resource_path=_env_path_list("SCHEMA_CODEGEN_RESOURCE_PATH"),
                fail_on_error=_env_bool("SCHEMA_CODEGEN_FAIL_ON_ERROR", default=True),
            ),
            repository=RepositorySettings(
                local_dir=_env_path("SCHEMA_CODEGEN_LOCAL_REPOSITORY")
                or Path.home() / ".m2" / "repository",
                remote_urls=_collect_remote_urls(),
            ),
            http=HttpSettings(
                timeout_seconds=float(os.getenv("SCHEMA_CODEGEN_HTTP_TIMEOUT_SECONDS", "30.0")),
                max_retries=int(os.getenv("SCHEMA_CODEGEN_HTTP_MAX_RETRIES", "3")),
            ),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        """Raise configuration error for out-of-range values."""

        if not self.build.generator_command.strip():
            raise ValueError("SCHEMA_CODEGEN_GENERATOR_COMMAND must not be empty.")
        if self.http.timeout_seconds <= 0:
            raise ValueError("SCHEMA_CODEGEN_HTTP_TIMEOUT_SECONDS must be > 0.")
        if self.http.max_retries < 0:
            raise ValueError("SCHEMA_CODEGEN_HTTP_MAX_RETRIES must be >= 0.")
        for url in self.repository.remote_urls:
            _validate_repository_url(url)


@dataclass(slots=True)
class BuildFile:
    """Declared generation tasks and the build-wide extension list."""

    tasks: tuple[GenerationTask, ...] = ()
    extensions: tuple[str, ...] = ()


def load_build_file(path: Path, *, project_dir: Path) -> BuildFile:
    """Parse the JSON build file; relative task paths resolve against ``project_dir``."""

    try:
        payload = json.loads(path.read_text("utf-8"))
    except FileNotFoundError as error:
        raise ConfigError(f"Build file not found: {path}") from error
    except json.JSONDecodeError as error:
        raise ConfigError(f"Invalid JSON in build file {path}: {error}") from error

    if not isinstance(payload, dict):
        raise ConfigError(f"Build file {path} must contain a JSON object.")

    raw_tasks = payload.get("tasks") or []
    if not isinstance(raw_tasks, list) or not all(isinstance(item, dict) for item in raw_tasks):
        raise ConfigError(f"'tasks' in {path} must be a list of objects.")
    raw_extensions = payload.get("extensions") or []
    if not isinstance(raw_extensions, list):
        raise ConfigError(f"'extensions' in {path} must be a list of coordinates.")

    return BuildFile(
        tasks=tuple(GenerationTask.from_mapping(item, base_dir=project_dir) for item in raw_tasks),
        extensions=tuple(str(value).strip() for value in raw_extensions if str(value).strip()),
    )


def _collect_remote_urls() -> tuple[str, ...]:
    raw = os.getenv("SCHEMA_CODEGEN_REMOTE_REPOSITORIES", "").strip()
    if not raw:
        return (MAVEN_CENTRAL,)
    values: list[str] = []
    for part in raw.split(","):
        normalized = part.strip().rstrip("/")
        if normalized and normalized not in values:
            values.append(normalized)
    return tuple(values)


def _validate_repository_url(value: str) -> None:
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError(
            "Invalid remote repository URL: "
            f"{value!r}. Expected an absolute URL with http:// or https:// scheme.",
        )


def _env_path(name: str) -> Path | None:
    value = os.getenv(name, "").strip()
    return Path(value) if value else None


def _env_path_list(name: str) -> tuple[Path, ...]:
    raw = os.getenv(name, "").strip()
    return tuple(Path(part) for part in raw.split(os.pathsep) if part.strip())


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
