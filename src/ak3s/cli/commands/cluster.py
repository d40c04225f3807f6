"""Cluster lifecycle commands."""

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from ak3s.errors import NotFoundError

from ..context import get_cli_context
from ..shared.console import console, with_error_handling

cluster_app = typer.Typer(
    help="Create, inspect and delete clusters",
    no_args_is_help=True,
)

DEFAULT_EXPORT_PATH = Path.home() / ".kube" / "config"


@cluster_app.command()
@with_error_handling
def create(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Cluster name")],
    addon: Annotated[
        list[str] | None,
        typer.Option(
            "--addon",
            "-a",
            help="Optional add-on from plugins.yaml to install (repeatable)",
        ),
    ] = None,
    api_port: Annotated[
        int | None,
        typer.Option("--api-port", min=1, max=65535, help="Host port for the API server"),
    ] = None,
    http_port: Annotated[
        int | None,
        typer.Option("--http-port", min=1, max=65535, help="Host port for HTTP ingress"),
    ] = None,
    https_port: Annotated[
        int | None,
        typer.Option("--https-port", min=1, max=65535, help="Host port for HTTPS ingress"),
    ] = None,
) -> None:
    """Create a cluster with networking, load balancing and ingress.

    Examples:
        ak3s cluster create demo
        ak3s cluster create demo --api-port 16443 --http-port 8080 --https-port 8443
        ak3s cluster create demo --addon metrics-server
    """
    cli = get_cli_context(ctx).with_overrides(
        api_port=api_port, http_port=http_port, https_port=https_port
    )
    console.print_header(f"Creating cluster {name}")

    cluster = cli.manager.create_cluster(name, addons=addon or None)

    console.print(f"\n  Endpoint:   [cyan]{cluster.endpoint}[/cyan]")
    console.print(f"  Kubeconfig: [cyan]{cluster.kubeconfig_path}[/cyan]")
    console.print(
        f"\n[dim]Use it with:[/dim] export KUBECONFIG={cluster.kubeconfig_path}"
    )


@cluster_app.command(name="list")
@with_error_handling
def list_clusters(ctx: typer.Context) -> None:
    """List every cluster managed by this tool."""
    cli = get_cli_context(ctx)
    names = sorted(cli.manager.list_clusters())
    if not names:
        console.info("No clusters found")
        return

    table = Table(title="Clusters")
    table.add_column("Name", style="cyan")
    table.add_column("Status")
    for name in names:
        try:
            status = cli.manager.get_cluster_status(name)
        except NotFoundError:
            status = "gone"
        color = "green" if status == "running" else "yellow"
        table.add_row(name, f"[{color}]{status}[/{color}]")
    console.print(table)


@cluster_app.command()
@with_error_handling
def delete(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Cluster name")],
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Skip confirmation prompt"),
    ] = False,
) -> None:
    """Delete a cluster, its nodes, volumes and stored kubeconfig."""
    cli = get_cli_context(ctx)
    if not console.confirm_action(
        f"Delete cluster {name}",
        [
            "Every node and workload of the cluster is removed",
            "Its volumes, networks and stored kubeconfig are deleted",
        ],
        force=force,
    ):
        console.print("[dim]Aborted.[/dim]")
        raise typer.Exit(0)

    console.print_header(f"Deleting cluster {name}", style="red")
    report = cli.manager.delete_cluster(name)
    console.print_report(report)


@cluster_app.command()
@with_error_handling
def access(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Cluster name")],
    export: Annotated[
        bool,
        typer.Option(
            "--export",
            help=f"Also copy the kubeconfig to {DEFAULT_EXPORT_PATH}",
        ),
    ] = False,
) -> None:
    """Regenerate the cluster's kubeconfig and print how to use it."""
    cli = get_cli_context(ctx)
    path = cli.manager.get_kubeconfig(
        name, export_to=DEFAULT_EXPORT_PATH if export else None
    )
    console.ok(f"Kubeconfig written to {path}")
    if export:
        console.info(f"Exported to {DEFAULT_EXPORT_PATH}")
    console.print(f"\n[dim]Use it with:[/dim] export KUBECONFIG={path}")
    console.print("[dim]Then:[/dim] kubectl get nodes")


@cluster_app.command()
@with_error_handling
def status(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Cluster name")],
) -> None:
    """Show the runtime state of a cluster's master node."""
    cli = get_cli_context(ctx)
    console.print(cli.manager.get_cluster_status(name))


@cluster_app.command()
@with_error_handling
def describe(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Cluster name")],
) -> None:
    """Show phase, endpoint, kubeconfig and nodes of a cluster."""
    cli = get_cli_context(ctx)
    cluster = cli.manager.describe_cluster(name)

    table = Table(title=f"Cluster {cluster.name}", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Provider", cli.manager.provider_name)
    table.add_row("Phase", str(cluster.phase))
    table.add_row("Endpoint", cluster.endpoint or "-")
    table.add_row(
        "Kubeconfig", str(cluster.kubeconfig_path) if cluster.kubeconfig_path else "-"
    )
    table.add_row("Nodes", ", ".join(cluster.nodes) or "-")
    console.print(table)
