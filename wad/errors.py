import contextlib
import sys
from typing import Iterator

import rich.markup

import wad.console


class Error(Exception):
    code = "general"


class ConfigurationError(Error):
    """Missing or malformed configuration. Always fatal."""

    code = "conf0"


class EnvCast(ConfigurationError):
    code = "conf1"


class StoreError(Error):
    """Object store errors are a cache miss on fetch and ignored on upload."""

    code = "store"


class RequestError(StoreError):
    """A transport-level failure, such as a dropped connection."""

    code = "req0"


class HTTPStatusError(StoreError):
    """The object store answered with a non-2xx status."""

    code = "req1"

    def __init__(self, msg: str, *, status_code: int, body: bytes = b""):
        super().__init__(msg)
        self.status_code = status_code
        self.body = body


class ExternalProcessError(Error):
    """An archive or install command exited non-zero."""

    code = "proc0"

    def __init__(self, msg: str, *, step: str, stderr: str = ""):
        super().__init__(msg)
        self.step = step
        self.stderr = stderr


def fmt_msg(exc: Exception, prefix: str = "") -> str:
    if isinstance(exc, Error):
        msg = rich.markup.escape(f"{prefix}{exc.args[0]}")
        return wad.console.fmt_msg(
            f"{msg} [reset][dim]({exc.code})[/dim]", emoji="broken_heart", color="red"
        )
    else:
        return wad.console.fmt_msg(
            "An unexpected error happened", emoji="broken_heart", color="red"
        )


def print(exc: Exception, prefix: str = "", verbose: bool = False) -> None:
    msg = fmt_msg(exc, prefix=prefix)
    wad.console.get().print(msg)
    if not isinstance(exc, Error) or verbose:
        wad.console.print_exception()


@contextlib.contextmanager
def catch_and_exit(verbose: bool = False) -> Iterator[None]:
    try:
        yield
    except Error as e:
        print(e, verbose=verbose)
        sys.exit(1)
    except Exception as e:
        print(e)
        sys.exit(1)
