from __future__ import annotations

import json
import shlex
import sys
from pathlib import Path

import allure
import pytest
from click.testing import CliRunner

from schema_codegen import __version__
from schema_codegen.main import schema_codegen

pytestmark = [
    allure.epic("Incremental Generation"),
    allure.feature("Generate CLI"),
]

MARKER = ".src_schemas_a.xsd.DONE"

FAKE_XJC = """\
import os
import sys
from pathlib import Path

args = sys.argv[1:]
with open(os.environ["FAKE_XJC_LOG"], "a", encoding="utf-8") as log:
    log.write(" ".join(args) + "\\n")
out = Path(args[args.index("-d") + 1])
(out / "Generated.java").write_text("class Generated {}", "utf-8")
print("parsing a schema...")
sys.exit(int(os.environ.get("FAKE_XJC_EXIT", "0")))
"""


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "SCHEMA_CODEGEN_PROJECT_DIR",
        "SCHEMA_CODEGEN_BUILD_FILE",
        "SCHEMA_CODEGEN_BUILD_DIR",
        "SCHEMA_CODEGEN_OUTPUT_DIR",
        "SCHEMA_CODEGEN_MARKER_DIR",
        "SCHEMA_CODEGEN_GENERATOR_COMMAND",
        "SCHEMA_CODEGEN_RESOURCE_PATH",
        "SCHEMA_CODEGEN_FAIL_ON_ERROR",
        "SCHEMA_CODEGEN_REMOTE_REPOSITORIES",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def generator_command(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    script = tmp_path / "fake_xjc.py"
    script.write_text(FAKE_XJC, "utf-8")
    monkeypatch.setenv("FAKE_XJC_LOG", str(tmp_path / "xjc.log"))
    return f"{shlex.quote(sys.executable)} {shlex.quote(str(script))}"


@pytest.fixture()
def build_project(project_dir: Path) -> Path:
    (project_dir / "src" / "schemas" / "a.xsd").write_text("<schema/>", "utf-8")
    (project_dir / "schema-codegen.json").write_text(
        json.dumps(
            {"tasks": [{"source": "src/schemas/a.xsd", "package_name": "com.example.a"}]},
        ),
        "utf-8",
    )
    return project_dir


def _generate(project: Path, command: str, *extra: str):
    return CliRunner().invoke(
        schema_codegen,
        ["generate", "--project-dir", str(project), "--generator", command, *extra],
    )


def _invocations(tmp_path: Path) -> list[str]:
    log = tmp_path / "xjc.log"
    return log.read_text("utf-8").splitlines() if log.exists() else []


def test_version_option():
    result = CliRunner().invoke(schema_codegen, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_generate_then_skip_on_rerun(build_project, generator_command, tmp_path):
    first = _generate(build_project, generator_command)
    second = _generate(build_project, generator_command)

    assert first.exit_code == 0, first.output
    assert "task=src/schemas/a.xsd status=succeeded reason=no marker" in first.output
    assert "parsing a schema..." in first.output
    assert "generated=1 skipped=0 failed=0" in first.output
    assert second.exit_code == 0, second.output
    assert "task=src/schemas/a.xsd status=skipped" in second.output

    output_dir = build_project / "build" / "generated" / "src" / "main" / "java"
    assert (output_dir / "Generated.java").exists()
    assert (build_project / "build" / "schema-codegen-markers" / MARKER).exists()
    invocations = _invocations(tmp_path)
    assert len(invocations) == 1
    assert invocations[0].startswith("-p com.example.a -quiet -d ")


def test_test_source_set_uses_test_root(build_project, generator_command):
    result = _generate(build_project, generator_command, "--test")

    assert result.exit_code == 0, result.output
    test_root = build_project / "build" / "generated" / "src" / "test" / "java"
    assert (test_root / "Generated.java").exists()


def test_generator_failure_exits_nonzero(build_project, generator_command, monkeypatch, tmp_path):
    monkeypatch.setenv("FAKE_XJC_EXIT", "1")

    result = _generate(build_project, generator_command)

    assert result.exit_code == 1
    assert "exit status 1" in result.output
    assert not (build_project / "build" / "schema-codegen-markers" / MARKER).exists()


def test_keep_going_reports_failed_task(build_project, generator_command, monkeypatch):
    monkeypatch.setenv("FAKE_XJC_EXIT", "4")

    result = _generate(build_project, generator_command, "--keep-going")

    assert result.exit_code == 1
    assert "status=failed exit=4" in result.output
    assert "Code generation failed." in result.output


def test_missing_build_file_is_reported(project_dir, generator_command):
    result = _generate(project_dir, generator_command)

    assert result.exit_code == 1
    assert "Build file not found" in result.output


def test_missing_generator_command_is_reported(build_project):
    result = _generate(build_project, "definitely-not-a-real-xjc-binary")

    assert result.exit_code == 1
    assert "Generator command not found" in result.output


def test_empty_task_list_is_reported(project_dir, generator_command):
    (project_dir / "schema-codegen.json").write_text('{"tasks": []}', "utf-8")

    result = _generate(project_dir, generator_command)

    assert result.exit_code == 1
    assert "Must specify generation tasks" in result.output
