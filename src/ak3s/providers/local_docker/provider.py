"""Local Docker provider.

Each cluster is one privileged k3s server container (the master) plus one
k3s agent container per worker node, all on the local Docker engine. The
engine is the only source of truth: nothing about a cluster is stored
except its kubeconfig, which is regenerated on demand.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from ak3s.errors import (
    Ak3sError,
    AddonInstallError,
    ClusterNotFoundError,
    MasterUnreachableError,
    format_command_output,
)
from ak3s.infra.constants import DEFAULT_CONSTANTS, ClusterConstants
from ak3s.infra.retry import Deadline
from ak3s.infra.shell_commands import ShellCommands
from ak3s.providers.base import BaseProvider
from ak3s.providers.models import Cluster, ClusterPhase, ProviderType
from ak3s.providers.report import TeardownReport
from ak3s.utils.progress import StepProgress

from .bootstrap import MasterBootstrapper
from .kubeconfig import KubeconfigStore
from .nodes import NodeManager
from .teardown import ClusterTeardown, parse_node_names

if TYPE_CHECKING:
    from ak3s.addons import Addon, AddonRegistry
    from ak3s.config import Ak3sSettings
    from ak3s.utils.console_like import ConsoleLike


class LocalDockerProvider(BaseProvider):
    """Provider backed by k3s containers on the local Docker engine.

    Attributes:
        settings: Image, ports, retry policies and add-on sources
        commands: Docker and kubectl command executor
        store: Per-cluster kubeconfig storage
    """

    provider_type = ProviderType.LOCAL_DOCKER

    def __init__(
        self,
        settings: Ak3sSettings,
        console: ConsoleLike | None = None,
        registry: AddonRegistry | None = None,
        *,
        commands: ShellCommands | None = None,
        constants: ClusterConstants | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the provider.

        Args:
            settings: Validated settings
            console: Where progress is reported
            registry: Add-on registry consulted for optional add-ons
            commands: Shell command executor (a fresh one when omitted)
            constants: Cluster constants
            sleep: Sleep function used by readiness polls
            clock: Monotonic clock used for overall deadlines
        """
        super().__init__(console)
        self.settings = settings
        self.registry = registry
        self.commands = commands or ShellCommands()
        self.constants = constants or DEFAULT_CONSTANTS
        self.store = KubeconfigStore(settings.clusters_dir, self.constants)
        self._sleep = sleep
        self._clock = clock

    def _deadline(self) -> Deadline | None:
        return Deadline.optional(self.settings.timeout_seconds, self._clock)

    # =========================================================================
    # Clusters
    # =========================================================================

    def create_cluster(self, name: str, addons: list[str] | None = None) -> Cluster:
        extra = self._resolve_addons(addons or [])
        bootstrapper = MasterBootstrapper(
            self.commands,
            self.settings,
            self.constants,
            self.get_kubeconfig,
            sleep=self._sleep,
            deadline=self._deadline(),
        )
        progress = StepProgress(
            self.console,
            total=MasterBootstrapper.BASE_STEPS + len(extra),
            operation=f"Create cluster {name}",
        )
        ports = {
            self.settings.api_port: self.constants.API_CONTAINER_PORT,
            self.settings.http_port: self.constants.HTTP_CONTAINER_PORT,
            self.settings.https_port: self.constants.HTTPS_CONTAINER_PORT,
        }

        try:
            kubeconfig = bootstrapper.run(name, progress, ports=ports, extra_addons=extra)
        except Ak3sError as e:
            progress.fail(e.message)
            raise

        progress.done()
        return Cluster(
            name=name,
            phase=ClusterPhase.RUNNING,
            endpoint=f"{self.settings.api_host}:{self.settings.api_port}",
            kubeconfig_path=kubeconfig,
            nodes=[name],
        )

    def _resolve_addons(self, names: list[str]) -> list[Addon]:
        if not names:
            return []
        if self.registry is None:
            raise AddonInstallError(
                "Optional add-ons requested but no add-on registry is loaded"
            )
        resolved = []
        for addon_name in names:
            addon = self.registry.get(addon_name)
            if not addon.supports(self.provider_type):
                raise AddonInstallError(
                    f"Add-on '{addon_name}' does not support the '{self.name}' backend",
                    details=f"Allowed backends: {', '.join(addon.allowed_backends) or 'none'}",
                )
            resolved.append(addon)
        return resolved

    def list_clusters(self) -> set[str]:
        return set(
            self.commands.docker.list_containers(
                [f"label={self.constants.server_label}"], include_stopped=True
            )
        )

    def delete_cluster(self, name: str) -> TeardownReport:
        teardown = ClusterTeardown(
            self.commands, self.settings, self.constants, self.store, self.get_kubeconfig
        )
        progress = StepProgress(
            self.console, total=ClusterTeardown.TOTAL_STEPS, operation=f"Delete cluster {name}"
        )
        try:
            report = teardown.run(name, progress)
        except Ak3sError as e:
            progress.fail(e.message)
            raise
        progress.done()
        return report

    def get_cluster_status(self, name: str) -> str:
        status = self.commands.docker.status(name)
        if status is None:
            raise ClusterNotFoundError(f"Cluster '{name}' not found")
        return status

    def describe_cluster(self, name: str) -> Cluster:
        status = self.get_cluster_status(name)
        port = self.commands.docker.published_port(name, self.constants.API_CONTAINER_PORT)
        cluster = Cluster(
            name=name,
            phase=ClusterPhase.from_runtime_status(status),
            endpoint=f"{self.settings.api_host}:{port}" if port else None,
            kubeconfig_path=self.store.path_for(name) if self.store.exists(name) else None,
        )
        if status != "running":
            return cluster

        try:
            kubeconfig = self.get_kubeconfig(name)
        except Ak3sError as e:
            logger.warning(f"Could not read members of {name}: {e.message}")
            return cluster
        cluster.kubeconfig_path = kubeconfig
        result = self.commands.kubectl.get_node_names(kubeconfig)
        if result.success:
            cluster.nodes = parse_node_names(result.stdout)
        return cluster

    def get_kubeconfig(self, name: str, export_to: Path | None = None) -> Path:
        docker = self.commands.docker
        if docker.status(name) is None:
            raise ClusterNotFoundError(f"Cluster '{name}' not found")

        result = docker.exec(name, ["cat", self.constants.KUBECONFIG_PATH])
        if not result.success or not result.stdout.strip():
            raise MasterUnreachableError(
                f"Failed to get kubeconfig from '{name}'",
                details=format_command_output(result.stdout, result.stderr),
            )

        port = (
            docker.published_port(name, self.constants.API_CONTAINER_PORT)
            or self.settings.api_port
        )
        content = self.store.rewrite(result.stdout, name, self.settings.api_host, port)
        path = self.store.save(name, content)
        logger.debug(f"Kubeconfig for {name} written to {path}")

        if export_to is not None:
            exported = self.store.export(name, export_to)
            logger.info(f"Kubeconfig for {name} exported to {exported}")
        return path

    # =========================================================================
    # Nodes
    # =========================================================================

    def _node_manager(self) -> NodeManager:
        return NodeManager(
            self.commands,
            self.settings,
            self.constants,
            self.get_kubeconfig,
            sleep=self._sleep,
        )

    def add_node(self, cluster_name: str, node_name: str) -> None:
        progress = StepProgress(
            self.console,
            total=NodeManager.JOIN_STEPS,
            operation=f"Add node {node_name} to {cluster_name}",
        )
        try:
            self._node_manager().join(cluster_name, node_name, progress, self._deadline())
        except Ak3sError as e:
            progress.fail(e.message)
            raise
        progress.done()

    def remove_node(self, cluster_name: str, node_name: str) -> TeardownReport:
        progress = StepProgress(
            self.console,
            total=NodeManager.REMOVE_STEPS,
            operation=f"Remove node {node_name} from {cluster_name}",
        )
        try:
            report = self._node_manager().remove(cluster_name, node_name, progress)
        except Ak3sError as e:
            progress.fail(e.message)
            raise
        progress.done()
        return report

    # =========================================================================
    # Add-ons
    # =========================================================================

    def install_addon(self, cluster_name: str, addon_name: str) -> None:
        """Install one registry add-on on an existing cluster.

        Raises:
            AddonInstallError: If the add-on is incompatible or a step fails
        """
        from ak3s.addons import AddonExecutor

        addon = self._resolve_addons([addon_name])[0]
        kubeconfig = self.get_kubeconfig(cluster_name)
        progress = StepProgress(
            self.console, total=len(addon.commands), operation=f"Install add-on {addon.name}"
        )
        executor = AddonExecutor(self.commands.runner, kubeconfig)
        try:
            for command in addon.commands:
                progress.advance(command.description or command.name)
                executor.execute_command(addon, command)
        except Ak3sError as e:
            progress.fail(e.message)
            raise
        progress.done()
