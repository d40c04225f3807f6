"""Optional add-on commands."""

from typing import Annotated

import typer
from rich.table import Table

from ak3s.addons import AddonRegistry

from ..context import get_cli_context
from ..shared.console import console, with_error_handling

addons_app = typer.Typer(help="List and install optional add-ons", no_args_is_help=True)


@addons_app.command(name="list")
@with_error_handling
def list_addons() -> None:
    """List the add-ons declared in plugins.yaml."""
    registry = AddonRegistry.load()
    addons = registry.all()
    if not addons:
        console.info(f"No add-ons declared in {registry.source}")
        return

    table = Table(title=f"Add-ons ({registry.source})")
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Backends")
    table.add_column("Description")
    for addon in addons:
        table.add_row(
            addon.name,
            str(addon.type),
            ", ".join(addon.allowed_backends) or "-",
            addon.description,
        )
    console.print(table)


@addons_app.command()
@with_error_handling
def install(
    ctx: typer.Context,
    cluster: Annotated[str, typer.Argument(help="Cluster name")],
    addon: Annotated[str, typer.Argument(help="Add-on name from plugins.yaml")],
) -> None:
    """Install an add-on on an existing cluster."""
    cli = get_cli_context(ctx)
    cli.manager.install_addon(cluster, addon)
