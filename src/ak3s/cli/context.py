"""CLI context and dependency container."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import click
import typer
from pydantic import ValidationError

from ak3s.config import Ak3sSettings, load_settings
from ak3s.core import ClusterManager
from ak3s.errors import ConfigurationError

from .shared.console import CLIConsole, console


@dataclass
class CLIOptions:
    """Global options collected by the root callback."""

    config_path: Path | None = None
    verbose: bool = False


@dataclass(frozen=True)
class CLIContext:
    """Runtime dependencies for CLI commands."""

    console: CLIConsole
    settings: Ak3sSettings
    manager: ClusterManager

    def with_overrides(self, **overrides: object) -> CLIContext:
        """Return a context whose settings have the given fields replaced."""
        values = {k: v for k, v in overrides.items() if v is not None}
        if not values:
            return self
        try:
            settings = Ak3sSettings.model_validate(
                {**self.settings.model_dump(), **values}
            )
        except ValidationError as e:
            raise ConfigurationError("Invalid option values", details=str(e)) from e
        return build_cli_context(settings=settings)


def build_cli_context(
    config_path: Path | None = None, settings: Ak3sSettings | None = None
) -> CLIContext:
    """Build a fresh CLIContext.

    Raises:
        ConfigurationError: If the settings file is invalid
    """
    settings = settings or load_settings(config_path)
    return CLIContext(
        console=console,
        settings=settings,
        manager=ClusterManager.from_settings(settings, console=console),
    )


def get_cli_context(ctx: typer.Context | None = None) -> CLIContext:
    """Return the CLIContext for this invocation, building it on first use."""
    context = ctx or click.get_current_context(silent=True)
    root = context.find_root() if context else None
    if root is not None and isinstance(root.obj, CLIContext):
        return root.obj

    options = root.obj if root is not None and isinstance(root.obj, CLIOptions) else None
    cli_context = build_cli_context(options.config_path if options else None)
    if root is not None:
        root.obj = cli_context
    return cli_context
