"""Main CLI application module.

Command Groups:
- cluster: Cluster lifecycle
- node: Worker node management
- addons: Optional add-ons
"""

import sys
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from .commands import addons_app, cluster_app, node_app
from .context import CLIContext, CLIOptions

app = typer.Typer(
    help="ak3s - k3s clusters in Docker containers",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(cluster_app, name="cluster")
app.add_typer(node_app, name="node")
app.add_typer(addons_app, name="addons")


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr: WARNING and above, or everything when verbose."""
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else "WARNING",
        format="<dim>{time:HH:mm:ss}</dim> <level>{level: <8}</level> {message}",
    )


@app.callback()
def callback(
    ctx: typer.Context,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Settings file (default: first ak3s.yaml in ., /etc/ak3s, ~/.ak3s)",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logs"),
    ] = False,
) -> None:
    configure_logging(verbose)
    if not isinstance(ctx.obj, CLIContext):
        ctx.obj = CLIOptions(config_path=config, verbose=verbose)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
