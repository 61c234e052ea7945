from __future__ import annotations

import contextlib
import time
from typing import TYPE_CHECKING, Iterator

import rich.markup

import wad.console

if TYPE_CHECKING:
    from wad.console import Color, Emoji

_PREFIX = rich.markup.escape("[wad]")


class Logger:
    """Prints "[wad]"-prefixed progress messages to the console.

    Debug messages, such as signed URLs and step timing, are only shown
    in verbose mode.
    """

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def print(self, msg: str, emoji: Emoji | None = None, color: Color | None = None) -> None:
        wad.console.print(f"{_PREFIX} {rich.markup.escape(msg)}", emoji=emoji, color=color)

    def info(self, msg: str) -> None:
        self.print(msg)

    def debug(self, msg: str) -> None:
        if self.verbose:
            self.print(msg, color="cyan")

    def warn(self, msg: str) -> None:
        self.print(msg, color="yellow")

    def error(self, msg: str) -> None:
        self.print(msg, emoji="broken_heart", color="red")

    def success(self, msg: str) -> None:
        self.print(msg, emoji="white_check_mark", color="green")

    @contextlib.contextmanager
    def step(self, description: str) -> Iterator[None]:
        """Time a step of the run, logging the duration in verbose mode."""
        start = time.monotonic()
        self.debug(f"{description}...")
        try:
            yield
        finally:
            self.debug(f"{description} took {time.monotonic() - start:.2f}s")


class Null(Logger):
    """A logger that discards everything."""

    def print(self, msg: str, emoji: Emoji | None = None, color: Color | None = None) -> None:
        pass
