"""Builds the generator's argument vector; flag names and order are fixed by the tool."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from schema_codegen.build.locations import LocationResolver
from schema_codegen.build.models import GenerationTask

logger = logging.getLogger(__name__)


class ArgumentBuilder:
    """Assembles ``xjc``-style arguments for one task."""

    def __init__(self, resolver: LocationResolver) -> None:
        self.resolver = resolver

    def build(
        self,
        task: GenerationTask,
        output_dir: Path,
        classpath: Sequence[Path] = (),
        *,
        verbose: bool | None = None,
    ) -> list[str]:
        if verbose is None:
            verbose = logger.isEnabledFor(logging.DEBUG)

        args: list[str] = []
        for entry in classpath:
            args.extend(["-classpath", str(entry.absolute())])
        if task.package_name is not None:
            args.extend(["-p", task.package_name])
        if task.binding_file is not None:
            args.extend(["-b", self.resolver.resolve(task.binding_file)])
        if task.catalog is not None:
            args.extend(["-catalog", task.catalog])
        if task.extension:
            args.append("-extension")
        args.extend(task.extension_args)
        args.append("-verbose" if verbose else "-quiet")
        args.extend(["-d", str(output_dir)])
        args.append(self.resolver.resolve(task.source))
        return args
