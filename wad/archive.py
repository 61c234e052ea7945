from __future__ import annotations

import pathlib
import shlex
from typing import Iterable

import wad.shell


class Archiver:
    """Packs and unpacks bzip2 tarballs with the tar command.

    Commands run in the project root, so source paths are stored relative
    to it and unpacking restores them in place.
    """

    def __init__(self, root: pathlib.Path):
        self.root = root

    def pack(self, archive_path: pathlib.Path, source_paths: Iterable[str]) -> wad.shell.Result:
        cmd = shlex.join(["tar", "-cjf", str(archive_path), *source_paths])
        return wad.shell.exec(cmd, cwd=self.root)

    def unpack(self, archive_path: pathlib.Path) -> wad.shell.Result:
        cmd = shlex.join(["tar", "-xjf", str(archive_path)])
        return wad.shell.exec(cmd, cwd=self.root)
