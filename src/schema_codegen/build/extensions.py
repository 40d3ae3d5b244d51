"""Resolves generator extension artifacts into classpath entries."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from schema_codegen.build.models import ArtifactCoordinate, ResolvedArtifact
from schema_codegen.errors import ResolutionError, SchemaCodegenError
from schema_codegen.repository.maven import ArtifactRepository

logger = logging.getLogger(__name__)


class ExtensionResolver:
    """Collects extension artifacts plus their runtime dependencies, then downloads them."""

    def __init__(self, repository: ArtifactRepository) -> None:
        self.repository = repository

    def resolve(self, coordinates: Sequence[str]) -> tuple[ResolvedArtifact, ...]:
        """Resolved artifacts in first-seen order, one per distinct coordinate."""

        parsed = [ArtifactCoordinate.parse(value) for value in coordinates]
        working_set: dict[ArtifactCoordinate, None] = {}
        try:
            for coordinate in parsed:
                working_set.setdefault(coordinate)
                for dependency in sorted(
                    self.repository.dependencies_of(coordinate, "runtime"),
                    key=str,
                ):
                    working_set.setdefault(dependency)

            resolved = tuple(
                ResolvedArtifact(coordinate=coordinate, path=self.repository.download(coordinate))
                for coordinate in working_set
            )
        except ResolutionError:
            raise
        except (SchemaCodegenError, OSError) as error:
            raise ResolutionError("Could not download extension artifact") from error

        logger.info(
            "Resolved %d extension artifact(s) from %d coordinate(s)",
            len(resolved),
            len(coordinates),
        )
        return resolved
