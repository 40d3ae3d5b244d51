"""Best-effort removal of generated directory trees."""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def delete_tree(root: Path) -> bool:
    """Delete ``root`` recursively; True when nothing is left behind.

    Walks the tree bottom-up without recursion. Individual failures are
    logged and the walk keeps going.
    """

    if root.is_symlink() or root.is_file():
        return _unlink(root)
    if not root.exists():
        return True

    ok = True
    for current, dirnames, filenames in os.walk(root, topdown=False):
        base = Path(current)
        for name in filenames:
            ok = _unlink(base / name) and ok
        for name in dirnames:
            child = base / name
            if child.is_symlink():
                ok = _unlink(child) and ok
            else:
                ok = _rmdir(child) and ok
    return _rmdir(root) and ok


def _unlink(path: Path) -> bool:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not delete %s: %s", path, exc)
        return False
    return True


def _rmdir(path: Path) -> bool:
    try:
        path.rmdir()
    except FileNotFoundError:
        return True
    except OSError as exc:
        logger.warning("Could not delete directory %s: %s", path, exc)
        return False
    return True
