"""Step-by-step progress reporting for multi-step operations."""

from __future__ import annotations

import time

from loguru import logger

from .console_like import ConsoleLike


class StepProgress:
    """Prints ``[step/total] description`` lines as an operation advances.

    Example:
        progress = StepProgress(console, total=6, operation="Create cluster demo")
        progress.advance("Creating master node container...")
        ...
        progress.done()
    """

    def __init__(self, console: ConsoleLike, total: int, operation: str) -> None:
        self.console = console
        self.total = total
        self.operation = operation
        self.step = 0
        self.current = ""
        self._started = time.monotonic()

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self._started

    def advance(self, description: str) -> None:
        self.step += 1
        self.current = description
        logger.info(f"{self.operation}: {description}")
        self.console.print(f"[cyan]\\[{self.step}/{self.total}][/cyan] {description}")

    def note(self, message: str) -> None:
        """Report something within the current step without advancing."""
        self.console.print(f"      [dim]{message}[/dim]")

    def warn(self, message: str) -> None:
        logger.warning(f"{self.operation}: {message}")
        self.console.warn(message)

    def done(self) -> None:
        self.console.ok(f"{self.operation} completed in {self.elapsed:.0f}s")

    def fail(self, message: str) -> None:
        logger.error(f"{self.operation} failed at '{self.current}': {message}")
        self.console.error(f"{self.operation} failed: {message}")
