"""Zero-length marker files recording each task's last successful generation."""

from __future__ import annotations

from pathlib import Path

from schema_codegen.build.models import MarkerRecord

_KEY_REPLACEMENTS = str.maketrans({"?": "_", "&": "_", "/": "_", "\\": "_"})


def marker_key(resource_uri: str, base_uri: str) -> str:
    """Single path segment derived from a resource identifier."""

    key = resource_uri
    if key.startswith(base_uri):
        key = key[len(base_uri) :]
    return key.translate(_KEY_REPLACEMENTS)


class MarkerStore:
    """Markers live at ``<directory>/.<key>.DONE``; their mtime is the baseline."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def path_for(self, key: str) -> Path:
        return self.directory / f".{key}.DONE"

    def load(self, key: str) -> MarkerRecord:
        path = self.path_for(key)
        try:
            timestamp: float | None = path.stat().st_mtime
        except FileNotFoundError:
            timestamp = None
        return MarkerRecord(key=key, path=path, timestamp=timestamp)

    def stamp(self, key: str) -> MarkerRecord:
        """Replace the marker; an interruption in between leaves no marker at all."""

        path = self.path_for(key)
        self.directory.mkdir(parents=True, exist_ok=True)
        path.unlink(missing_ok=True)
        path.touch(exist_ok=False)
        return self.load(key)
