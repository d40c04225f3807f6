"""Runs add-on install steps against a cluster."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from ak3s.errors import AddonInstallError, format_command_output

from .models import Addon, AddonCommand

if TYPE_CHECKING:
    from ak3s.infra.shell_commands import CommandRunner


class AddonExecutor:
    """Executes add-on commands with ``KUBECONFIG`` set to one cluster."""

    def __init__(self, runner: CommandRunner, kubeconfig: Path) -> None:
        self._runner = runner
        self.kubeconfig = kubeconfig

    def execute_command(self, addon: Addon, command: AddonCommand) -> None:
        """Run one step.

        Raises:
            AddonInstallError: With the step's captured output on failure
        """
        logger.info(f"Add-on {addon.name}: {command.description or command.name}")
        result = self._runner.run(
            [command.command, *command.args],
            input_data=command.stdin,
            env={"KUBECONFIG": str(self.kubeconfig)},
        )
        if not result.success:
            raise AddonInstallError(
                f"Add-on '{addon.name}' failed at step '{command.name}'",
                details=format_command_output(result.stdout, result.stderr),
            )

    def execute(self, addon: Addon) -> None:
        """Run every step in declaration order, stopping at the first failure."""
        for command in addon.commands:
            self.execute_command(addon, command)
