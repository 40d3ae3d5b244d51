"""Controller for the generate CLI command."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path

from schema_codegen.build.coordinator import BuildCoordinator
from schema_codegen.build.extensions import ExtensionResolver
from schema_codegen.build.locations import LocationResolver
from schema_codegen.build.markers import MarkerStore
from schema_codegen.build.models import BuildResult, SourceSet, TaskState
from schema_codegen.build.runner import TaskRunner
from schema_codegen.build.staleness import StalenessEvaluator
from schema_codegen.config import BuildFile, Settings, load_build_file
from schema_codegen.generator import CliGeneratorBackend, SchemaGenerator
from schema_codegen.http.fetcher import HttpFetcher
from schema_codegen.repository import MavenRepository


@dataclass(slots=True)
class GenerateCommand:
    """CLI input for one build."""

    build_file: Path | None = None
    project_dir: Path | None = None
    output_dir: Path | None = None
    marker_dir: Path | None = None
    generator_command: str | None = None
    source_set: SourceSet = SourceSet.MAIN
    keep_going: bool = False


@dataclass(slots=True)
class GenerateResult:
    """Printable build report."""

    success: bool
    lines: list[str]


class BuildCliController:
    """Wires settings, build file and collaborators into a build run."""

    def __init__(self, generator: SchemaGenerator | None = None) -> None:
        self._generator = generator

    def generate(self, command: GenerateCommand) -> GenerateResult:
        settings = _apply_overrides(Settings.from_env(build_file=command.build_file), command)
        build_file = load_build_file(
            _build_file_path(settings, explicit=command.build_file is not None),
            project_dir=settings.build.project_dir,
        )
        with HttpFetcher(
            timeout_seconds=settings.http.timeout_seconds,
            max_retries=settings.http.max_retries,
        ) as fetcher:
            coordinator = self._coordinator(
                settings=settings,
                build_file=build_file,
                source_set=command.source_set,
                fetcher=fetcher,
            )
            result = coordinator.run(build_file.tasks)
        return GenerateResult(success=result.success, lines=render_build_lines(result))

    def _coordinator(
        self,
        *,
        settings: Settings,
        build_file: BuildFile,
        source_set: SourceSet,
        fetcher: HttpFetcher,
    ) -> BuildCoordinator:
        marker_dir = settings.build.resolved_marker_dir()
        extension_resolver = None
        if build_file.extensions:
            extension_resolver = ExtensionResolver(
                MavenRepository(
                    local_dir=settings.repository.local_dir,
                    remote_urls=settings.repository.remote_urls,
                    fetcher=fetcher,
                ),
            )
        runner = TaskRunner(
            resolver=LocationResolver(settings.build.project_dir),
            markers=MarkerStore(marker_dir),
            evaluator=StalenessEvaluator(probe=fetcher),
            generator=self._generator or CliGeneratorBackend(settings.build.generator_command),
            output_dir=settings.build.output_dir_for(source_set),
            extensions=build_file.extensions,
            extension_resolver=extension_resolver,
            fail_on_error=settings.build.fail_on_error,
        )
        return BuildCoordinator(
            runner=runner,
            marker_dir=marker_dir,
            resource_path=settings.build.resource_path,
        )


def render_build_lines(result: BuildResult) -> list[str]:
    lines: list[str] = []
    for outcome in result.outcomes:
        line = f"task={outcome.task.source} status={outcome.state.value}"
        if outcome.state == TaskState.FAILED and outcome.exit_code is not None:
            line += f" exit={outcome.exit_code}"
        if outcome.reasons:
            line += f" reason={'; '.join(outcome.reasons)}"
        lines.append(line)
    lines.append(
        "Build summary: "
        f"generated={result.generated} skipped={result.skipped} failed={result.failed}",
    )
    return lines


def _apply_overrides(settings: Settings, command: GenerateCommand) -> Settings:
    build = settings.build
    if command.project_dir is not None:
        build = replace(build, project_dir=command.project_dir)
    if command.output_dir is not None:
        build = replace(build, output_dir=command.output_dir)
    if command.marker_dir is not None:
        build = replace(build, marker_dir=command.marker_dir)
    if command.generator_command is not None:
        build = replace(build, generator_command=command.generator_command)
    if command.keep_going:
        build = replace(build, fail_on_error=False)
    settings = replace(settings, build=build)
    settings.validate()
    return settings


def _build_file_path(settings: Settings, *, explicit: bool) -> Path:
    path = settings.build_file
    if explicit or path.is_absolute():
        return path
    return settings.build.project_dir / path

