"""Shared test fixtures."""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from schema_codegen.build.locations import LocationResolver, active_search_path
from schema_codegen.build.markers import MarkerStore
from schema_codegen.build.models import InvocationResult
from schema_codegen.build.runner import TaskRunner
from schema_codegen.build.staleness import StalenessEvaluator
from schema_codegen.generator.base import GeneratorRequest


@dataclass
class FakeGenerator:
    """In-process generator double recording every request."""

    exit_codes: list[int] = field(default_factory=list)
    error: Exception | None = None
    requests: list[GeneratorRequest] = field(default_factory=list)
    search_path_entries: list[tuple[Path, ...]] = field(default_factory=list)

    def run(self, request: GeneratorRequest) -> InvocationResult:
        self.requests.append(request)
        self.search_path_entries.append(active_search_path().entries)
        if self.error is not None:
            raise self.error
        exit_code = self.exit_codes.pop(0) if self.exit_codes else 0
        return InvocationResult(exit_code=exit_code)

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture()
def project_dir(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    (root / "src" / "schemas").mkdir(parents=True)
    return root


@pytest.fixture()
def write_file() -> Callable[..., Path]:
    """Write a file and pin its mtime so ordering never depends on the clock."""

    def _write(path: Path, content: str = "", *, mtime: float | None = None) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, "utf-8")
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return path

    return _write


@pytest.fixture()
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture()
def make_runner(project_dir: Path, generator: FakeGenerator) -> Callable[..., TaskRunner]:
    def _make(**overrides) -> TaskRunner:
        options = {
            "resolver": LocationResolver(project_dir),
            "markers": MarkerStore(project_dir / "build" / "markers"),
            "evaluator": StalenessEvaluator(),
            "generator": generator,
            "output_dir": project_dir / "build" / "generated",
        }
        options.update(overrides)
        return TaskRunner(**options)

    return _make
