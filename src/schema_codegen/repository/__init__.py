"""Artifact repository collaborators."""

from schema_codegen.repository.maven import MAVEN_CENTRAL, ArtifactRepository, MavenRepository

__all__ = [
    "MAVEN_CENTRAL",
    "ArtifactRepository",
    "MavenRepository",
]
