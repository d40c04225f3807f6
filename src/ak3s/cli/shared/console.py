"""Console output shared by every CLI command.

``with_error_handling`` turns an ``Ak3sError`` raised inside a command into
a red message, an optional details panel and exit code 1. Destructive
commands ask for confirmation through ``CLIConsole.confirm_action``.
"""

from collections.abc import Callable
from functools import wraps

import typer
from rich.console import Console, ConsoleRenderable
from rich.panel import Panel
from rich.prompt import Confirm

from ak3s.errors import Ak3sError, TeardownStepError
from ak3s.providers.report import TeardownReport


class CLIConsole:
    """Rich console wrapper used by commands and provider progress output."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def print(self, msg: ConsoleRenderable | str | None = None) -> None:
        self.console.print(msg)

    def info(self, msg: str) -> None:
        self.console.print(f"[cyan]ℹ[/cyan]  {msg}")

    def ok(self, msg: str) -> None:
        self.console.print(f"[green]✅[/green] {msg}")

    def error(self, msg: str) -> None:
        self.console.print(f"[red]❌[/red] {msg}")

    def warn(self, msg: str) -> None:
        self.console.print(f"[yellow]⚠️[/yellow]  {msg}")

    def print_header(self, title: str, style: str = "blue") -> None:
        self.console.print(Panel.fit(f"[bold]{title}[/bold]", border_style=style))

    def confirm_action(
        self,
        action: str,
        consequences: list[str] | None = None,
        force: bool = False,
    ) -> bool:
        """Ask before a destructive action.

        Args:
            action: What is about to happen (e.g., "Delete cluster demo")
            consequences: One line per thing that will be lost or disrupted
            force: Skip the prompt and treat the action as confirmed

        Returns:
            True if the action should go ahead
        """
        if force:
            return True

        body = f"[bold red]{action}[/bold red]"
        if consequences:
            body += "\n" + "\n".join(f"  • {line}" for line in consequences)
        self.console.print(Panel(body, title="Confirm", border_style="red"))

        try:
            return Confirm.ask("Proceed?", default=False, console=self.console)
        except (KeyboardInterrupt, EOFError):
            self.console.print("\n[dim]Cancelled.[/dim]")
            return False

    def fail(self, message: str, details: str | None = None, exit_code: int = 1) -> None:
        """Report an error and leave the command with ``exit_code``."""
        self.error(f"[bold red]{message}[/bold red]")
        if details:
            self.console.print(Panel(details, title="Details", border_style="red"))
        raise typer.Exit(exit_code)

    def print_report(self, report: TeardownReport) -> None:
        """Summarize a teardown report: one line per failed step."""
        failures = [o for o in report.outcomes if not o.ok]
        if not failures:
            self.ok(f"Removed {report.subject} cleanly")
            return
        self.warn(f"{len(failures)} cleanup step(s) of {report.subject} failed:")
        for outcome in failures:
            marker = "[red]fatal[/red]" if outcome.fatal else "[yellow]warn[/yellow]"
            self.console.print(f"  {marker} {outcome.describe()}")


def with_error_handling(func: Callable[..., None]) -> Callable[..., None]:
    """Run a command, mapping library errors and Ctrl-C to exit codes.

    ``Ak3sError`` exits with 1 and ``KeyboardInterrupt`` with 130. When a
    teardown failed fatally, the partial report is printed first. Anything
    else propagates.
    """

    @wraps(func)
    def wrapper(*args: object, **kwargs: object) -> None:
        try:
            func(*args, **kwargs)
        except TeardownStepError as e:
            if e.report is not None:
                console.print_report(e.report)
            console.fail(e.message, e.details)
        except Ak3sError as e:
            console.fail(e.message, e.details)
        except KeyboardInterrupt:
            console.print("\n[dim]Interrupted.[/dim]")
            raise typer.Exit(130) from None

    return wrapper


console = CLIConsole()
