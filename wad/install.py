from __future__ import annotations

import pathlib
import re
import shlex

import wad.shell


def default_command(without: str) -> str:
    """Sync the locked environment, leaving out the excluded groups."""
    groups = [group for group in re.split(r"[\s,]+", without) if group]
    no_groups = " ".join(f"--no-group {shlex.quote(group)}" for group in groups)
    return f"uv sync --frozen {no_groups}".strip()


class Installer:
    """Runs the dependency install command, streaming its output."""

    def __init__(self, root: pathlib.Path, command: str | None = None, without: str = "dev"):
        self.root = root
        self.command = command or default_command(without)

    def install(self) -> wad.shell.Result:
        return wad.shell.exec(self.command, cwd=self.root, capture=False)
