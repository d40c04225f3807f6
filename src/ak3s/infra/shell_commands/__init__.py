"""Shell command abstractions for the external collaborators.

This package wraps the two command-line tools the orchestrator sequences:

- docker: the container runtime that hosts k3s units
- kubectl: the cluster CLI, always invoked with an explicit kubeconfig

Usage:
    from ak3s.infra.shell_commands import ShellCommands

    commands = ShellCommands()
    if commands.docker.container_exists("demo"):
        print("Cluster unit already exists")
"""

from pathlib import Path

from .docker import DockerCommands
from .kubectl import KubectlCommands
from .runner import CommandRunner
from .types import CommandResult, ContainerSpec


class ShellCommands:
    """Unified interface for all shell command operations.

    Attributes:
        docker: Docker-related commands
        kubectl: Kubernetes kubectl commands
    """

    def __init__(self, cwd: Path | None = None) -> None:
        """Initialize the shell commands executor.

        Args:
            cwd: Working directory for commands (defaults to the current one)
        """
        self._runner = CommandRunner(cwd)

        self.docker = DockerCommands(self._runner)
        self.kubectl = KubectlCommands(self._runner)

    @property
    def runner(self) -> CommandRunner:
        """Runner shared by the command modules."""
        return self._runner


__all__ = [
    "ShellCommands",
    "CommandResult",
    "ContainerSpec",
    "DockerCommands",
    "KubectlCommands",
    "CommandRunner",
]
