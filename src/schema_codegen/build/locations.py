"""Resource locator resolution, including the logical ``classpath:`` scheme."""

from __future__ import annotations

import logging
import zipfile
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from urllib.parse import urlsplit
from urllib.request import url2pathname

from schema_codegen.errors import LocationError

logger = logging.getLogger(__name__)

CLASSPATH_SCHEME = "classpath"
_INVALID_URI_CHARS = frozenset(' "<>\\^`{|}')


class ResourceSearchPath:
    """Ordered directories and jar/zip archives searched for named resources."""

    def __init__(self, entries: Sequence[Path] = ()) -> None:
        self.entries: tuple[Path, ...] = tuple(Path(entry) for entry in entries)

    def find(self, name: str) -> str | None:
        """Return the URI of the first entry holding ``name``, or None."""

        if not name or name.startswith("/"):
            return None
        for entry in self.entries:
            if entry.is_dir():
                candidate = entry / name
                if candidate.is_file():
                    return candidate.resolve().as_uri()
            elif entry.is_file() and zipfile.is_zipfile(entry):
                with zipfile.ZipFile(entry) as archive:
                    try:
                        archive.getinfo(name)
                    except KeyError:
                        continue
                return f"jar:{entry.resolve().as_uri()}!/{name}"
        return None

    def extended(self, entries: Sequence[Path]) -> ResourceSearchPath:
        """Copy of this search path with ``entries`` appended after the current ones."""

        return ResourceSearchPath((*self.entries, *entries))


_ACTIVE_SEARCH_PATH: ContextVar[ResourceSearchPath] = ContextVar(
    "schema_codegen_search_path",
    default=ResourceSearchPath(),
)


def active_search_path() -> ResourceSearchPath:
    return _ACTIVE_SEARCH_PATH.get()


@contextmanager
def search_path_scope(entries: Sequence[Path]) -> Iterator[ResourceSearchPath]:
    """Install an augmented search path; the previous one is restored on every exit path."""

    token = _ACTIVE_SEARCH_PATH.set(active_search_path().extended(entries))
    try:
        yield _ACTIVE_SEARCH_PATH.get()
    finally:
        _ACTIVE_SEARCH_PATH.reset(token)


class LocationResolver:
    """Maps task locators to absolute resource identifiers (URI strings)."""

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = base_dir

    @property
    def base_uri(self) -> str:
        return self.base_dir.resolve().as_uri().rstrip("/") + "/"

    def resolve(self, locator: str) -> str:
        path = Path(locator)
        if locator and path.exists():
            uri = path.resolve().as_uri()
        elif locator and (self.base_dir / locator).exists():
            uri = (self.base_dir / locator).resolve().as_uri()
        else:
            uri = _parse_uri(locator)

        if urlsplit(uri).scheme == CLASSPATH_SCHEME:
            search_path = active_search_path()
            found = search_path.find(locator[10:]) or search_path.find(locator[11:])
            if found is not None:
                uri = found
            else:
                logger.debug("Resource %s not found on search path, keeping locator", locator)
        return uri


def uri_to_path(uri: str) -> Path | None:
    """Local path for a ``file:`` identifier, otherwise None."""

    parts = urlsplit(uri)
    if parts.scheme != "file":
        return None
    return Path(url2pathname(parts.path))


def _parse_uri(locator: str) -> str:
    if not locator or any(
        char in _INVALID_URI_CHARS or ord(char) < 0x20 or ord(char) == 0x7F  # noqa: PLR2004
        for char in locator
    ):
        raise LocationError(locator)
    try:
        urlsplit(locator)
    except ValueError as error:
        raise LocationError(locator) from error
    return locator
