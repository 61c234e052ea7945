from __future__ import annotations

import pathlib
import subprocess

import msgspec


class Result(msgspec.Struct, frozen=True):
    """The outcome of a shell command."""

    exited_zero: bool
    returncode: int
    stdout: str = ""
    stderr: str = ""


def exec(
    cmd: str,
    /,
    *,
    cwd: pathlib.Path | str | None = None,
    capture: bool = True,
    env: dict[str, str] | None = None,
) -> Result:
    """Run a shell command.

    If capture=False, output goes straight to the terminal and the
    result's stdout and stderr are empty.
    """
    result = subprocess.run(
        cmd,
        shell=True,
        text=True,
        capture_output=capture,
        env=env,
        cwd=cwd,
    )
    return Result(
        exited_zero=result.returncode == 0,
        returncode=result.returncode,
        stdout=result.stdout or "",
        stderr=result.stderr or "",
    )
