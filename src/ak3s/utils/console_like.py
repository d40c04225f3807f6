"""Output sink for step progress.

Providers report progress through any object with the four methods of
``ConsoleLike``; messages may carry Rich markup. The CLI passes its
``CLIConsole``. Programmatic callers that pass nothing get a
``PlainConsole``, which renders the markup instead of echoing the tags.
"""

from __future__ import annotations

from typing import Protocol

from rich.console import Console


class ConsoleLike(Protocol):
    def print(self, msg: str) -> None: ...

    def ok(self, msg: str) -> None: ...

    def warn(self, msg: str) -> None: ...

    def error(self, msg: str) -> None: ...


class PlainConsole:
    """Undecorated progress output on a Rich console."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(highlight=False)

    def print(self, msg: str) -> None:
        self.console.print(msg)

    def ok(self, msg: str) -> None:
        self.console.print(msg)

    def warn(self, msg: str) -> None:
        self.console.print(f"warning: {msg}")

    def error(self, msg: str) -> None:
        self.console.print(f"error: {msg}")


def coalesce_console(console: ConsoleLike | None) -> ConsoleLike:
    return console if console is not None else PlainConsole()
