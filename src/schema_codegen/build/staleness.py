"""Decides whether a generation task has to run again."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol
from urllib.parse import urlsplit

from schema_codegen.build.locations import uri_to_path
from schema_codegen.build.models import MarkerRecord

logger = logging.getLogger(__name__)

_PROBED_SCHEMES = frozenset({"http", "https"})


class RemoteTimestampProbe(Protocol):
    """Anything able to report a remote resource's modification time."""

    def last_modified(self, url: str) -> float | None:
        """Return epoch seconds, or None when the probe fails."""


@dataclass(slots=True)
class StalenessDecision:
    """Outcome of a staleness check with every reason that triggered it."""

    stale: bool
    reasons: tuple[str, ...] = ()


class StalenessEvaluator:
    """Compares resource and dependency timestamps against a task's marker."""

    def __init__(self, probe: RemoteTimestampProbe | None = None) -> None:
        self.probe = probe

    def resource_timestamp(self, resource_uri: str) -> float:
        """Modification time of a resource; 0 when it cannot be determined."""

        path = uri_to_path(resource_uri)
        if path is not None:
            return file_timestamp(path)
        if self.probe is None or urlsplit(resource_uri).scheme not in _PROBED_SCHEMES:
            return 0.0
        return self.probe.last_modified(resource_uri) or 0.0

    def evaluate(
        self,
        resource_uri: str,
        marker: MarkerRecord,
        dependencies: Sequence[Path] = (),
    ) -> StalenessDecision:
        if marker.timestamp is None:
            return StalenessDecision(stale=True, reasons=("no marker",))

        source_timestamp = self.resource_timestamp(resource_uri)
        if source_timestamp > marker.timestamp:
            return StalenessDecision(stale=True, reasons=(f"{resource_uri} changed",))

        reasons = [
            f"dependency {dependency} changed"
            for dependency in dependencies
            if file_timestamp(dependency) > marker.timestamp
        ]
        for reason in reasons:
            logger.debug("Marker %s is stale: %s", marker.key, reason)
        return StalenessDecision(stale=bool(reasons), reasons=tuple(reasons))

    def is_stale(
        self,
        resource_uri: str,
        marker: MarkerRecord,
        dependencies: Sequence[Path] = (),
    ) -> bool:
        return self.evaluate(resource_uri, marker, dependencies).stale


def file_timestamp(path: Path) -> float:
    try:
        return path.stat().st_mtime
    except OSError:
        return 0.0
