"""Schema generator backends."""

from schema_codegen.generator.base import GeneratorRequest, SchemaGenerator
from schema_codegen.generator.cli_backend import CliGeneratorBackend

__all__ = [
    "CliGeneratorBackend",
    "GeneratorRequest",
    "SchemaGenerator",
]
