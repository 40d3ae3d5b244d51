"""Runs every declared generation task in order and aggregates the build result."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from schema_codegen.build.locations import search_path_scope
from schema_codegen.build.models import BuildResult, GenerationTask
from schema_codegen.build.runner import TaskRunner
from schema_codegen.errors import CleanupFailure, ConfigError

logger = logging.getLogger(__name__)


class BuildCoordinator:
    """Sequential task loop.

    Resolution, invocation and generation errors abort the build as soon as
    they happen. Cleanup failures are collected and reported only after the
    remaining tasks have run.
    """

    def __init__(
        self,
        *,
        runner: TaskRunner,
        marker_dir: Path,
        resource_path: Sequence[Path] = (),
    ) -> None:
        self.runner = runner
        self.marker_dir = marker_dir
        self.resource_path = tuple(resource_path)

    def run(self, tasks: Sequence[GenerationTask] | None) -> BuildResult:
        if not tasks:
            raise ConfigError("Must specify generation tasks")

        self.runner.output_dir.mkdir(parents=True, exist_ok=True)
        self.marker_dir.mkdir(parents=True, exist_ok=True)

        result = BuildResult()
        with search_path_scope(self.resource_path):
            for task in tasks:
                result.outcomes.append(self.runner.run(task))

        logger.info(
            "Build finished: generated=%d skipped=%d failed=%d",
            result.generated,
            result.skipped,
            result.failed,
        )
        if result.cleanup_failed:
            raise CleanupFailure("Could not delete redundant directories", result=result)
        return result
