"""Generator interface for schema-to-code compilation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from schema_codegen.build.models import InvocationResult


@dataclass(slots=True)
class GeneratorRequest:
    """Inputs required for one generator invocation."""

    args: list[str]
    classpath: tuple[Path, ...] = ()


class SchemaGenerator(Protocol):
    """Protocol implemented by generator backends."""

    def run(self, request: GeneratorRequest) -> InvocationResult:
        """Run the generator synchronously and return its exit status."""
