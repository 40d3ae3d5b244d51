"""Maven-layout artifact repository: local repository first, remote fallback."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from defusedxml import ElementTree

from schema_codegen.build.models import ArtifactCoordinate
from schema_codegen.errors import ResolutionError
from schema_codegen.http.fetcher import HttpFetcher

logger = logging.getLogger(__name__)

MAVEN_CENTRAL = "https://repo.maven.apache.org/maven2"
RUNTIME_SCOPES = frozenset({"compile", "runtime"})
_PROPERTY_PATTERN = re.compile(r"\$\{([^}]+)\}")


class ArtifactRepository(Protocol):
    """Coordinate-based artifact lookup used by extension resolution."""

    def download(self, coordinate: ArtifactCoordinate) -> Path:
        """Return a local file for the artifact, fetching it when necessary."""

    def dependencies_of(
        self,
        coordinate: ArtifactCoordinate,
        scope: str = "runtime",
    ) -> set[ArtifactCoordinate]:
        """Declared dependencies visible in ``scope``."""


class MavenRepository:
    """Resolves ``group:artifact:version`` against a Maven repository layout."""

    def __init__(
        self,
        *,
        local_dir: Path,
        remote_urls: Sequence[str] = (MAVEN_CENTRAL,),
        fetcher: HttpFetcher | None = None,
    ) -> None:
        self.local_dir = local_dir
        self.remote_urls = tuple(url.rstrip("/") for url in remote_urls)
        self._fetcher = fetcher or HttpFetcher()

    def download(self, coordinate: ArtifactCoordinate) -> Path:
        return self._fetch(coordinate, "jar")

    def dependencies_of(
        self,
        coordinate: ArtifactCoordinate,
        scope: str = "runtime",
    ) -> set[ArtifactCoordinate]:
        if scope != "runtime":
            raise ValueError(f"Unsupported dependency scope: {scope!r}")
        pom_path = self._fetch(coordinate, "pom")
        try:
            root = ElementTree.fromstring(pom_path.read_bytes())
        except ElementTree.ParseError as error:
            raise ResolutionError(f"Invalid POM for {coordinate}: {pom_path}") from error
        return set(_runtime_dependencies(root, coordinate))

    def _fetch(self, coordinate: ArtifactCoordinate, extension: str) -> Path:
        relative = artifact_path(coordinate, extension)
        local = self.local_dir / relative
        if local.is_file():
            return local

        errors: list[str] = []
        for remote in self.remote_urls:
            url = f"{remote}/{relative.as_posix()}"
            result = self._fetcher.download(url, local)
            if result.is_success:
                logger.info("Downloaded %s", url)
                return local
            errors.append(f"{url}: {result.error}")
        detail = "; ".join(errors) or "none configured"
        raise ResolutionError(
            f"Could not download {coordinate} ({extension}) from "
            f"{len(self.remote_urls)} remote repositories: {detail}",
        )


def artifact_path(coordinate: ArtifactCoordinate, extension: str = "jar") -> Path:
    return (
        Path(*coordinate.group.split("."))
        / coordinate.artifact
        / coordinate.version
        / f"{coordinate.artifact}-{coordinate.version}.{extension}"
    )


def _runtime_dependencies(
    root: ElementTree.Element,
    owner: ArtifactCoordinate,
) -> list[ArtifactCoordinate]:
    properties = {
        "project.groupId": owner.group,
        "project.artifactId": owner.artifact,
        "project.version": owner.version,
        "pom.version": owner.version,
    }
    properties_element = _child(root, "properties")
    if properties_element is not None:
        for element in properties_element:
            if element.text:
                properties.setdefault(_local_name(element.tag), element.text.strip())

    dependencies: list[ArtifactCoordinate] = []
    container = _child(root, "dependencies")
    if container is None:
        return dependencies
    for dependency in container:
        if _local_name(dependency.tag) != "dependency":
            continue
        scope = _child_text(dependency, "scope") or "compile"
        optional = (_child_text(dependency, "optional") or "false").lower() == "true"
        if scope not in RUNTIME_SCOPES or optional:
            continue

        values = [
            _substitute(_child_text(dependency, name), properties)
            for name in ("groupId", "artifactId", "version")
        ]
        if not all(values) or any("${" in value for value in values if value):
            logger.warning("Skipping unresolvable dependency of %s: %s", owner, values)
            continue
        group, artifact, version = values
        dependencies.append(ArtifactCoordinate(group=group, artifact=artifact, version=version))
    return dependencies


def _substitute(value: str | None, properties: dict[str, str]) -> str | None:
    if value is None:
        return None
    return _PROPERTY_PATTERN.sub(lambda match: properties.get(match[1], match[0]), value)


def _child(element: ElementTree.Element, name: str) -> ElementTree.Element | None:
    for child in element:
        if _local_name(child.tag) == name:
            return child
    return None


def _child_text(element: ElementTree.Element, name: str) -> str | None:
    child = _child(element, name)
    if child is None or not child.text or not child.text.strip():
        return None
    return child.text.strip()


def _local_name(tag: str) -> str:
    if "}" in tag:
        return tag.rsplit("}", 1)[1]
    return tag
