from __future__ import annotations

import pathlib


def make_parent_dirs(path: pathlib.Path) -> None:
    """Create parent dirs of a path.

    Ensures the local artifact directory exists before writing into it.
    """
    path.parent.mkdir(parents=True, exist_ok=True)


def remove(path: pathlib.Path) -> bool:
    """Remove a file if it exists. Returns whether anything was removed."""
    try:
        path.unlink()
    except FileNotFoundError:
        return False

    return True
