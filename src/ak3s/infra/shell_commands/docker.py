"""Docker command abstractions.

This module provides the container runtime operations the orchestrator
sequences: creating k3s units, executing commands inside them, inspecting
and removing them, and cleaning up the volumes and networks they leave
behind.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .types import CommandResult, ContainerSpec

if TYPE_CHECKING:
    from .runner import CommandRunner


class DockerCommands:
    """Docker-related shell commands.

    Provides operations for:
    - Container lifecycle (run, inspect, exec, rm, ps)
    - Published port lookup
    - Volume and network cleanup
    """

    def __init__(self, runner: CommandRunner) -> None:
        """Initialize Docker commands.

        Args:
            runner: Command runner for executing shell commands
        """
        self._runner = runner

    # =========================================================================
    # Container Lifecycle
    # =========================================================================

    def run_container(self, spec: ContainerSpec) -> CommandResult:
        """Create and start a detached container.

        Args:
            spec: Container name, image, flags, env, mounts and ports

        Returns:
            CommandResult whose stdout holds the container id
        """
        cmd = ["docker", "run", "-d", "--name", spec.name]
        if spec.privileged:
            cmd.append("--privileged")
        for path in spec.tmpfs:
            cmd.extend(["--tmpfs", path])
        for key, value in spec.labels.items():
            cmd.extend(["--label", f"{key}={value}"])
        for key, value in spec.env.items():
            cmd.extend(["-e", f"{key}={value}"])
        for host_port, container_port in spec.ports.items():
            cmd.extend(["-p", f"{host_port}:{container_port}"])
        for source, target in spec.volumes.items():
            cmd.extend(["-v", f"{source}:{target}"])
        cmd.append(spec.image)
        cmd.extend(spec.command)
        return self._runner.run(cmd)

    def exec(self, container: str, argv: list[str]) -> CommandResult:
        """Run a command inside a running container.

        Example:
            >>> docker.exec("demo", ["kubectl", "get", "nodes"])
        """
        return self._runner.run(["docker", "exec", container, *argv])

    def inspect(self, container: str, fmt: str) -> CommandResult:
        """Read a field of a container using a Go template.

        Args:
            container: Container name or id
            fmt: Go template (e.g., "{{.State.Status}}")
        """
        return self._runner.run(["docker", "inspect", "-f", fmt, container])

    def container_exists(self, container: str) -> bool:
        """Check whether a container with this name exists in any state."""
        return self.inspect(container, "{{.Name}}").success

    def status(self, container: str) -> str | None:
        """Runtime state of a container ("running", "exited", ...), or None."""
        result = self.inspect(container, "{{.State.Status}}")
        return result.stdout.strip() if result.success else None

    def ip_address(self, container: str) -> str | None:
        """First network address of a container, or None if unavailable."""
        result = self.inspect(
            container, "{{range .NetworkSettings.Networks}}{{.IPAddress}} {{end}}"
        )
        if not result.success:
            return None
        addresses = result.stdout.split()
        return addresses[0] if addresses else None

    def label(self, container: str, key: str) -> str | None:
        """Value of a container label, or None if the label is not set."""
        result = self.inspect(container, f'{{{{index .Config.Labels "{key}"}}}}')
        value = result.stdout.strip()
        if not result.success or not value or value == "<no value>":
            return None
        return value

    def published_port(self, container: str, container_port: int) -> int | None:
        """Host port bound to a container TCP port, or None if unpublished."""
        result = self._runner.run(["docker", "port", container, f"{container_port}/tcp"])
        if not result.success:
            return None
        for line in result.stdout.splitlines():
            _, _, port = line.strip().rpartition(":")
            if port.isdigit():
                return int(port)
        return None

    def remove_container(self, container: str, *, force: bool = True) -> CommandResult:
        """Remove a container (stopping it first when forced)."""
        cmd = ["docker", "rm"]
        if force:
            cmd.append("-f")
        cmd.append(container)
        return self._runner.run(cmd)

    def list_containers(
        self, filters: list[str], *, include_stopped: bool = True
    ) -> list[str]:
        """Names of containers matching every filter.

        Args:
            filters: Docker filter expressions (e.g., "label=ak3s.role=server")
            include_stopped: Whether to include non-running containers

        Returns:
            Container names; empty if none match or docker fails
        """
        cmd = ["docker", "ps"]
        if include_stopped:
            cmd.append("-a")
        for expression in filters:
            cmd.extend(["--filter", expression])
        cmd.extend(["--format", "{{.Names}}"])
        result = self._runner.run(cmd)
        if not result.success:
            return []
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    # =========================================================================
    # Volumes and Networks
    # =========================================================================

    def list_volumes(self, filters: list[str]) -> list[str]:
        """Names of volumes matching every filter."""
        return self._list_names(["docker", "volume", "ls", "-q"], filters)

    def create_volume(self, volume: str, labels: dict[str, str]) -> CommandResult:
        """Create a named volume carrying the given labels."""
        cmd = ["docker", "volume", "create"]
        for key, value in labels.items():
            cmd.extend(["--label", f"{key}={value}"])
        cmd.append(volume)
        return self._runner.run(cmd)

    def remove_volume(self, volume: str) -> CommandResult:
        """Remove a volume."""
        return self._runner.run(["docker", "volume", "rm", "-f", volume])

    def list_networks(self, filters: list[str]) -> list[str]:
        """Names of networks matching every filter."""
        return self._list_names(
            ["docker", "network", "ls", "--format", "{{.Name}}"], filters
        )

    def remove_network(self, network: str) -> CommandResult:
        """Remove a network."""
        return self._runner.run(["docker", "network", "rm", network])

    def _list_names(self, base_cmd: list[str], filters: list[str]) -> list[str]:
        cmd = list(base_cmd)
        for expression in filters:
            cmd.extend(["--filter", expression])
        result = self._runner.run(cmd)
        if not result.success:
            return []
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]
