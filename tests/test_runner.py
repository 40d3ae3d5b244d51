from __future__ import annotations

import os
from pathlib import Path

import allure
import pytest

from schema_codegen.build.extensions import ExtensionResolver
from schema_codegen.build.locations import active_search_path
from schema_codegen.build.markers import MarkerStore
from schema_codegen.build.models import ArtifactCoordinate, GenerationTask, TaskState
from schema_codegen.errors import (
    ConfigError,
    GenerationFailure,
    InvocationError,
    LocationError,
)

pytestmark = [
    allure.epic("Incremental Generation"),
    allure.feature("Task Execution"),
]

SOURCE_TIME = 1_700_000_000.0


class JarRepository:
    def __init__(self, root: Path) -> None:
        self.root = root
        self.resolved = 0

    def download(self, coordinate: ArtifactCoordinate) -> Path:
        self.resolved += 1
        return self.root / f"{coordinate.artifact}.jar"

    def dependencies_of(self, coordinate, scope="runtime"):
        return set()


@pytest.fixture()
def schema(project_dir: Path, write_file) -> Path:
    return write_file(project_dir / "src" / "schemas" / "a.xsd", mtime=SOURCE_TIME)


def _marker_store(project_dir: Path) -> MarkerStore:
    return MarkerStore(project_dir / "build" / "markers")


def test_first_run_generates_and_stamps_marker(make_runner, generator, schema, project_dir):
    outcome = make_runner().run(GenerationTask(source="src/schemas/a.xsd"))

    assert outcome.state == TaskState.SUCCEEDED
    assert outcome.marker_key == "src_schemas_a.xsd"
    assert generator.calls == 1
    marker = _marker_store(project_dir).load(outcome.marker_key)
    assert marker.exists
    assert marker.timestamp >= SOURCE_TIME


def test_second_run_skips_generator(make_runner, generator, schema):
    runner = make_runner()
    task = GenerationTask(source="src/schemas/a.xsd")

    runner.run(task)
    outcome = runner.run(task)

    assert outcome.state == TaskState.SKIPPED
    assert generator.calls == 1


def test_skipped_task_does_not_rewrite_marker(make_runner, schema, project_dir):
    runner = make_runner()
    task = GenerationTask(source="src/schemas/a.xsd")
    key = runner.run(task).marker_key
    marker_path = _marker_store(project_dir).path_for(key)
    pinned = SOURCE_TIME + 100

    os.utime(marker_path, (pinned, pinned))

    runner.run(task)

    assert marker_path.stat().st_mtime == pinned


def test_changed_dependency_triggers_regeneration(make_runner, generator, schema, write_file):
    dependency = write_file(schema.parent / "common.xsd", mtime=SOURCE_TIME)
    runner = make_runner()
    task = GenerationTask(source="src/schemas/a.xsd", dependencies=(dependency,))
    runner.run(task)
    marker_time = runner.markers.load("src_schemas_a.xsd").timestamp

    write_file(dependency, "changed", mtime=marker_time + 10)
    outcome = runner.run(task)

    assert outcome.state == TaskState.SUCCEEDED
    assert generator.calls == 2
    assert any("common.xsd" in reason for reason in outcome.reasons)


def test_nonzero_exit_leaves_marker_unset_and_aborts(make_runner, generator, schema, project_dir):
    generator.exit_codes = [1]
    runner = make_runner()
    task = GenerationTask(source="src/schemas/a.xsd")

    with pytest.raises(GenerationFailure, match="exit status 1") as error:
        runner.run(task)

    assert error.value.exit_code == 1
    assert not _marker_store(project_dir).load("src_schemas_a.xsd").exists

    runner.run(task)
    assert generator.calls == 2


def test_nonzero_exit_keeps_last_good_marker(make_runner, generator, schema, project_dir):
    runner = make_runner(fail_on_error=False)
    task = GenerationTask(source="src/schemas/a.xsd")
    runner.run(task)
    store = _marker_store(project_dir)
    good = store.load("src_schemas_a.xsd").timestamp

    os.utime(schema, (good + 50, good + 50))
    generator.exit_codes = [2]

    outcome = runner.run(task)

    assert outcome.state == TaskState.FAILED
    assert outcome.exit_code == 2
    assert store.load("src_schemas_a.xsd").timestamp == good


def test_failed_generation_skips_cleanup(make_runner, generator, schema, project_dir):
    leftover = project_dir / "build" / "generated" / "com" / "example" / "internal"
    leftover.mkdir(parents=True)
    generator.exit_codes = [3]
    runner = make_runner(fail_on_error=False)

    runner.run(GenerationTask(source="src/schemas/a.xsd", delete_dirs=(leftover,)))

    assert leftover.exists()


def test_successful_generation_deletes_designated_dirs(make_runner, schema, project_dir):
    leftover = project_dir / "build" / "generated" / "com" / "example" / "internal"
    (leftover / "sub").mkdir(parents=True)
    (leftover / "sub" / "X.java").write_text("", "utf-8")

    outcome = make_runner().run(
        GenerationTask(source="src/schemas/a.xsd", delete_dirs=(leftover,)),
    )

    assert outcome.cleanup_ok
    assert not leftover.exists()


def test_generator_exception_becomes_invocation_error(make_runner, generator, schema):
    generator.error = RuntimeError("class not found")

    with pytest.raises(InvocationError, match="src/schemas/a.xsd: class not found"):
        make_runner().run(GenerationTask(source="src/schemas/a.xsd"))


def test_unmappable_source_is_fatal_before_invocation(make_runner, generator):
    with pytest.raises(LocationError):
        make_runner().run(GenerationTask(source="no such file.xsd"))

    assert generator.calls == 0


def test_unmappable_binding_file_is_fatal_even_when_up_to_date(make_runner, generator, schema):
    with pytest.raises(ConfigError):
        make_runner().run(
            GenerationTask(source="src/schemas/a.xsd", binding_file="bad binding.xjb"),
        )

    assert generator.calls == 0


def test_extensions_are_scoped_to_one_invocation(
    make_runner,
    generator,
    schema,
    tmp_path: Path,
):
    repository = JarRepository(tmp_path / "jars")
    runner = make_runner(
        extensions=("org.jvnet:fluent-api:3.0",),
        extension_resolver=ExtensionResolver(repository),
    )

    runner.run(GenerationTask(source="src/schemas/a.xsd"))

    request = generator.requests[0]
    jar = tmp_path / "jars" / "fluent-api.jar"
    assert request.args[:2] == ["-classpath", str(jar)]
    assert request.classpath == (jar,)
    assert generator.search_path_entries[0][-1] == jar

    assert jar not in active_search_path().entries


def test_extensions_are_not_resolved_for_skipped_tasks(make_runner, schema, tmp_path: Path):
    repository = JarRepository(tmp_path / "jars")
    runner = make_runner(
        extensions=("org.jvnet:fluent-api:3.0",),
        extension_resolver=ExtensionResolver(repository),
    )
    task = GenerationTask(source="src/schemas/a.xsd")

    runner.run(task)
    runner.run(task)

    assert repository.resolved == 1


def test_extensions_require_a_resolver(make_runner):
    with pytest.raises(ConfigError, match="no artifact repository"):
        make_runner(extensions=("g:a:1",))
