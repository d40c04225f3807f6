"""Tests for StepProgress."""

import io
from unittest.mock import MagicMock

from rich.console import Console

from ak3s.utils.console_like import PlainConsole, coalesce_console
from ak3s.utils.progress import StepProgress


def test_advance_numbers_steps() -> None:
    console = MagicMock()
    progress = StepProgress(console, total=3, operation="Create cluster demo")

    progress.advance("Creating master node container...")
    progress.advance("Waiting for cluster to be ready...")

    printed = [c.args[0] for c in console.print.call_args_list]
    assert "[1/3]" in printed[0]
    assert "Creating master node container..." in printed[0]
    assert "[2/3]" in printed[1]
    assert progress.current == "Waiting for cluster to be ready..."


def test_fail_names_operation() -> None:
    console = MagicMock()
    progress = StepProgress(console, total=1, operation="Delete cluster demo")

    progress.fail("boom")

    console.error.assert_called_once_with("Delete cluster demo failed: boom")


def test_coalesce_console_defaults_to_plain_console() -> None:
    console = MagicMock()

    assert coalesce_console(console) is console
    assert isinstance(coalesce_console(None), PlainConsole)


def test_plain_console_renders_markup() -> None:
    buffer = io.StringIO()
    progress = StepProgress(
        PlainConsole(Console(file=buffer, width=120)),
        total=6,
        operation="Create cluster demo",
    )

    progress.advance("Creating master node container...")
    progress.note("API ready after 2 attempt(s)")
    progress.warn("drain node w1: timeout")

    lines = buffer.getvalue().splitlines()
    assert lines[0] == "[1/6] Creating master node container..."
    assert lines[1].strip() == "API ready after 2 attempt(s)"
    assert lines[2] == "warning: drain node w1: timeout"
    assert "[cyan]" not in buffer.getvalue()
