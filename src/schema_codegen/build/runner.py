"""Runs one generation task end to end."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from schema_codegen.build.arguments import ArgumentBuilder
from schema_codegen.build.cleanup import delete_tree
from schema_codegen.build.extensions import ExtensionResolver
from schema_codegen.build.locations import LocationResolver, search_path_scope
from schema_codegen.build.markers import MarkerStore, marker_key
from schema_codegen.build.models import GenerationTask, InvocationResult, TaskOutcome, TaskState
from schema_codegen.build.staleness import StalenessEvaluator
from schema_codegen.errors import (
    ConfigError,
    GenerationFailure,
    InvocationError,
    SchemaCodegenError,
)
from schema_codegen.generator.base import GeneratorRequest, SchemaGenerator

logger = logging.getLogger(__name__)


class TaskRunner:
    """Resolve, check staleness, invoke the generator, stamp the marker, clean up.

    A nonzero generator exit leaves the marker untouched so the task is
    retried on the next build. With ``fail_on_error`` (the default) it also
    aborts the build by raising :class:`GenerationFailure`; otherwise the task
    is reported as failed and the caller moves on.
    """

    def __init__(  # noqa: PLR0913
        self,
        *,
        resolver: LocationResolver,
        markers: MarkerStore,
        evaluator: StalenessEvaluator,
        generator: SchemaGenerator,
        output_dir: Path,
        extensions: Sequence[str] = (),
        extension_resolver: ExtensionResolver | None = None,
        fail_on_error: bool = True,
    ) -> None:
        if extensions and extension_resolver is None:
            raise ConfigError("Extensions are configured but no artifact repository is available.")
        self.resolver = resolver
        self.markers = markers
        self.evaluator = evaluator
        self.generator = generator
        self.output_dir = output_dir
        self.extensions = tuple(extensions)
        self.extension_resolver = extension_resolver
        self.fail_on_error = fail_on_error
        self.arguments = ArgumentBuilder(resolver)

    def run(self, task: GenerationTask) -> TaskOutcome:
        _enter(task, TaskState.RESOLVING)
        source_uri = self.resolver.resolve(task.source)
        if task.binding_file is not None:
            self.resolver.resolve(task.binding_file)
        key = marker_key(source_uri, self.resolver.base_uri)

        _enter(task, TaskState.EVALUATING)
        decision = self.evaluator.evaluate(source_uri, self.markers.load(key), task.dependencies)
        if not decision.stale:
            logger.info("Skipping %s: generated code is up to date", task.source)
            return TaskOutcome(task=task, state=TaskState.SKIPPED, marker_key=key)

        logger.info("Generating code for %s (%s)", task.source, "; ".join(decision.reasons))
        _enter(task, TaskState.INVOKING)
        result = self._invoke(task)
        if not result.success:
            logger.error(
                "Generator exited with status %d for %s",
                result.exit_code,
                task.source,
            )
            if self.fail_on_error:
                raise GenerationFailure(
                    f"Code generation failed for {task.source} "
                    f"(exit status {result.exit_code})",
                    exit_code=result.exit_code,
                )
            return TaskOutcome(
                task=task,
                state=TaskState.FAILED,
                marker_key=key,
                reasons=decision.reasons,
                exit_code=result.exit_code,
            )

        self.markers.stamp(key)
        _enter(task, TaskState.CLEANING)
        cleanup_ok = True
        for directory in task.delete_dirs:
            cleanup_ok = delete_tree(directory) and cleanup_ok
        if not cleanup_ok:
            logger.error("Could not delete redundant directories of %s", task.source)

        _enter(task, TaskState.DONE)
        return TaskOutcome(
            task=task,
            state=TaskState.SUCCEEDED,
            marker_key=key,
            reasons=decision.reasons,
            exit_code=result.exit_code,
            cleanup_ok=cleanup_ok,
        )

    def _invoke(self, task: GenerationTask) -> InvocationResult:
        classpath: tuple[Path, ...] = ()
        if self.extensions and self.extension_resolver is not None:
            artifacts = self.extension_resolver.resolve(self.extensions)
            classpath = tuple(artifact.path for artifact in artifacts)

        with search_path_scope(classpath):
            args = self.arguments.build(task, self.output_dir, classpath)
            request = GeneratorRequest(args=args, classpath=classpath)
            try:
                return self.generator.run(request)
            except InvocationError as error:
                raise InvocationError(f"{task.source}: {error}") from error
            except SchemaCodegenError:
                raise
            except Exception as error:
                raise InvocationError(f"{task.source}: {error}") from error


def _enter(task: GenerationTask, state: TaskState) -> None:
    logger.debug("Task %s -> %s", task.source, state.value)
