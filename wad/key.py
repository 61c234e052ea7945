"""Cache key computation.

A key is the SHA-1 of the platform fingerprint, the values of watched
environment variables and the contents of watched files, in that order.
Missing variables and unreadable files contribute an empty segment.
"""

from __future__ import annotations

import hashlib
import os
import pathlib
import platform
from typing import Final, Iterable, Mapping

_ARCHES: Final = {
    ("Linux", "x86_64"): "linux-64",
    ("Linux", "aarch64"): "linux-aarch64",
    ("Linux", "ppc64le"): "linux-ppc64le",
    ("Darwin", "arm64"): "osx-arm64",
    ("Darwin", "x86_64"): "osx-64",
    ("Windows", "AMD64"): "win-64",
    ("Windows", "ARM64"): "win-arm64",
    ("Windows", "x86"): "win-32",
}


def arch() -> str:
    """The normalized OS and architecture of the machine."""
    system, machine = platform.system(), platform.machine()
    if name := _ARCHES.get((system, machine)):
        return name
    elif system == "Linux" and platform.architecture()[0] == "32bit":
        return "linux-32"
    else:
        return f"{system.lower() or 'unknown'}-{machine.lower() or 'unknown'}"


def fingerprint() -> str:
    """The interpreter and platform part of the cache key."""
    return "\n".join(
        [platform.python_implementation(), platform.python_version(), arch()]
    )


def _env_value(name: str, environ: Mapping[str, str]) -> bytes:
    return environ.get(name, "").encode()


def _file_contents(path: str, root: pathlib.Path | None) -> bytes:
    location = pathlib.Path(path)
    if root and not location.is_absolute():
        location = root / location

    try:
        return location.read_bytes()
    except OSError:
        return b""


def segments(
    platform_fingerprint: str,
    env_var_names: Iterable[str],
    watched_paths: Iterable[str],
    *,
    environ: Mapping[str, str] | None = None,
    root: pathlib.Path | None = None,
) -> list[bytes]:
    environ = os.environ if environ is None else environ
    return [
        platform_fingerprint.encode(),
        *(_env_value(name, environ) for name in env_var_names),
        *(_file_contents(path, root) for path in watched_paths),
    ]


def compute(
    platform_fingerprint: str,
    env_var_names: Iterable[str],
    watched_paths: Iterable[str],
    *,
    environ: Mapping[str, str] | None = None,
    root: pathlib.Path | None = None,
) -> str:
    """Compute the hex digest identifying an artifact."""
    return hashlib.sha1(
        b"\n".join(
            segments(
                platform_fingerprint,
                env_var_names,
                watched_paths,
                environ=environ,
                root=root,
            )
        )
    ).hexdigest()
