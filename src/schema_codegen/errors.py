"""Build-level error kinds raised by the code generation orchestrator."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from schema_codegen.build.models import BuildResult


class SchemaCodegenError(RuntimeError):
    """Base error for a build that cannot complete."""


class ConfigError(SchemaCodegenError):
    """Missing or invalid build configuration."""


class LocationError(ConfigError):
    """Resource locator cannot be turned into a resource identifier."""

    def __init__(self, locator: str) -> None:
        super().__init__(f"Could not map {locator}")
        self.locator = locator


class ResolutionError(SchemaCodegenError):
    """Extension artifact could not be resolved or downloaded."""


class InvocationError(SchemaCodegenError):
    """Generator invocation raised instead of returning an exit status."""


class GenerationFailure(SchemaCodegenError):
    """Generator returned a nonzero exit status."""

    def __init__(self, message: str, *, exit_code: int) -> None:
        super().__init__(message)
        self.exit_code = exit_code


class CleanupFailure(SchemaCodegenError):
    """One or more directories designated for removal could not be deleted."""

    def __init__(self, message: str, *, result: BuildResult | None = None) -> None:
        super().__init__(message)
        self.result = result
