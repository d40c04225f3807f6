"""Worker node commands."""

from typing import Annotated

import typer

from ..context import get_cli_context
from ..shared.console import console, with_error_handling

node_app = typer.Typer(help="Add and remove worker nodes", no_args_is_help=True)


@node_app.command()
@with_error_handling
def add(
    ctx: typer.Context,
    cluster: Annotated[str, typer.Argument(help="Cluster name")],
    node: Annotated[str, typer.Argument(help="Name of the new worker node")],
) -> None:
    """Start a worker node and wait until it joins the cluster."""
    cli = get_cli_context(ctx)
    console.print_header(f"Adding node {node} to {cluster}")
    cli.manager.add_node(cluster, node)


@node_app.command()
@with_error_handling
def remove(
    ctx: typer.Context,
    cluster: Annotated[str, typer.Argument(help="Cluster name")],
    node: Annotated[str, typer.Argument(help="Worker node name")],
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Skip confirmation prompt"),
    ] = False,
) -> None:
    """Drain a worker node, unregister it and remove its container."""
    cli = get_cli_context(ctx)
    if not console.confirm_action(
        f"Remove node {node} from {cluster}",
        ["Workloads on the node are evicted"],
        force=force,
    ):
        console.print("[dim]Aborted.[/dim]")
        raise typer.Exit(0)

    report = cli.manager.remove_node(cluster, node)
    console.print_report(report)
