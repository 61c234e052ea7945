from __future__ import annotations

import functools
from typing import TYPE_CHECKING, Any, Literal, TypeAlias

import rich.console

if TYPE_CHECKING:
    Emoji: TypeAlias = Literal["broken_heart", "white_check_mark"]
    Color: TypeAlias = Literal["cyan", "red", "green", "yellow", "white"]


def fmt_msg(msg: str, emoji: Emoji | None = None, color: Color | None = None) -> str:
    if color:
        msg = f"[{color}]{msg}[/{color}]"

    if emoji:
        msg = f":{emoji}-emoji: {msg}"

    return msg


def print(msg: str, emoji: Emoji | None = None, color: Color | None = None, **kwargs: Any) -> None:
    get().print(fmt_msg(msg, emoji=emoji, color=color), highlight=False, **kwargs)


def print_exception() -> None:
    get().print_exception()


@functools.cache
def get() -> rich.console.Console:
    return rich.console.Console()
