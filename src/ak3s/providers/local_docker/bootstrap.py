"""Master bootstrap sequence.

Turns a bare container into a working cluster:

1. Provision the privileged master unit
2. Wait until ``kubectl get nodes`` succeeds inside it
3. Retrieve and persist the kubeconfig
4. Install Calico and wait for its pods
5. Install MetalLB, wait for its pods, apply the address pool
6. Install the NGINX ingress controller

Every step is fail-fast. Nothing is rolled back on failure; the caller
tears the cluster down explicitly.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from ak3s.addons import AddonExecutor
from ak3s.errors import (
    AddonInstallError,
    ProvisionError,
    ReadinessTimeout,
    format_command_output,
)
from ak3s.infra.retry import Deadline, PollOutcome, RetryPolicy, poll_command
from ak3s.infra.shell_commands import CommandResult, ContainerSpec
from ak3s.utils.progress import StepProgress

from .builtin_addons import BuiltinAddon, builtin_addons

if TYPE_CHECKING:
    from ak3s.addons import Addon
    from ak3s.config import Ak3sSettings
    from ak3s.infra.constants import ClusterConstants
    from ak3s.infra.shell_commands import ShellCommands


class MasterBootstrapper:
    """Runs the master bootstrap sequence for one cluster."""

    BASE_STEPS = 6

    def __init__(
        self,
        commands: ShellCommands,
        settings: Ak3sSettings,
        constants: ClusterConstants,
        fetch_kubeconfig: Callable[[str], Path],
        *,
        sleep: Callable[[float], None],
        deadline: Deadline | None = None,
    ) -> None:
        """Initialize the bootstrapper.

        Args:
            commands: Shell command executor
            settings: Image, ports, retry policies and add-on sources
            constants: Cluster constants
            fetch_kubeconfig: Retrieves and persists a cluster's kubeconfig
            sleep: Sleep function used between polling attempts
            deadline: Optional bound on every wait of this bootstrap
        """
        self.commands = commands
        self.settings = settings
        self.constants = constants
        self.fetch_kubeconfig = fetch_kubeconfig
        self.sleep = sleep
        self.deadline = deadline

    def run(
        self,
        name: str,
        progress: StepProgress,
        *,
        ports: dict[int, int],
        extra_addons: list[Addon] | None = None,
    ) -> Path:
        """Run every step; returns the persisted kubeconfig path."""
        progress.advance("Creating master node container...")
        self.provision(name, ports)

        progress.advance("Waiting for cluster to be ready...")
        outcome = self._poll(
            lambda: self.commands.docker.exec(name, ["kubectl", "get", "nodes"]),
            self.settings.readiness,
            f"cluster '{name}' to become ready",
        )
        progress.note(f"API ready after {outcome.attempts} attempt(s)")

        progress.advance("Getting kubeconfig...")
        kubeconfig = self.fetch_kubeconfig(name)
        progress.note(f"Kubeconfig saved to {kubeconfig}")

        for addon in builtin_addons(self.settings, self.constants):
            progress.advance(f"Installing {addon.name}...")
            self.install_builtin(addon, kubeconfig)

        if extra_addons:
            executor = AddonExecutor(self.commands.runner, kubeconfig)
            for extra in extra_addons:
                progress.advance(f"Installing add-on {extra.name}...")
                executor.execute(extra)

        return kubeconfig

    def master_spec(self, name: str, ports: dict[int, int]) -> ContainerSpec:
        """Container spec of a master unit."""
        c = self.constants
        return ContainerSpec(
            name=name,
            image=self.settings.k3s_image,
            command=["server", *c.SERVER_FLAGS],
            env={
                "K3S_KUBECONFIG_MODE": "644",
                "K3S_CLUSTER_INIT": "true",
                "K3S_NODE_NAME": name,
            },
            labels={c.LABEL_CLUSTER: name, c.LABEL_ROLE: c.ROLE_SERVER},
            ports=ports,
            volumes={
                c.volume_name(name, c.DATA_VOLUME_SUFFIX): c.K3S_DATA_DIR,
                c.volume_name(name, c.CONFIG_VOLUME_SUFFIX): c.K3S_CONFIG_DIR,
            },
            tmpfs=list(c.TMPFS_MOUNTS),
        )

    def provision(self, name: str, ports: dict[int, int]) -> None:
        """Create the state volumes and start the master unit.

        Raises:
            ProvisionError: If the name is taken or docker refuses the unit
        """
        docker = self.commands.docker
        if docker.container_exists(name):
            raise ProvisionError(
                f"A container named '{name}' already exists",
                details="Delete the existing cluster or choose another name",
            )

        spec = self.master_spec(name, ports)
        labels = {self.constants.LABEL_CLUSTER: name}
        for volume in spec.volumes:
            result = docker.create_volume(volume, labels)
            if not result.success:
                raise ProvisionError(
                    f"Failed to create volume '{volume}'",
                    details=format_command_output(result.stdout, result.stderr),
                )

        result = docker.run_container(spec)
        if not result.success:
            raise ProvisionError(
                f"Failed to create master node '{name}'",
                details=format_command_output(result.stdout, result.stderr),
            )

    def install_builtin(self, addon: BuiltinAddon, kubeconfig: Path) -> None:
        """Apply a built-in add-on, wait for it, then apply its configuration.

        Raises:
            AddonInstallError: If a manifest fails to apply
            ReadinessTimeout: If the add-on's pods never reach Running
        """
        kubectl = self.commands.kubectl
        if addon.content is not None:
            result = kubectl.apply_content(kubeconfig, addon.content)
        else:
            result = kubectl.apply(kubeconfig, addon.source or "")
        self._check_applied(result, f"Failed to install {addon.name}")

        if addon.wait_namespace:
            namespace = addon.wait_namespace
            self._poll(
                lambda: self.commands.kubectl.get_pod_phases(kubeconfig, namespace),
                self.settings.addon_readiness,
                f"{addon.name} pods in '{namespace}' to be running",
                ready=self._pods_running,
            )

        if addon.post_install:
            self._apply_with_retry(
                kubeconfig, addon.post_install, f"Failed to configure {addon.name}"
            )

    def _pods_running(self, result: CommandResult) -> bool:
        return result.success and self.constants.RUNNING_PHASE in result.stdout

    def _apply_with_retry(self, kubeconfig: Path, content: str, message: str) -> None:
        # Admission webhooks of a freshly started add-on reject objects for a
        # short while after its pods report Running.
        try:
            self._poll(
                lambda: self.commands.kubectl.apply_content(kubeconfig, content),
                self.settings.addon_readiness,
                message.lower(),
            )
        except ReadinessTimeout as e:
            raise AddonInstallError(message, details=e.details or e.message) from e

    def _check_applied(self, result: CommandResult, message: str) -> None:
        if not result.success:
            raise AddonInstallError(
                message, details=format_command_output(result.stdout, result.stderr)
            )

    def _poll(
        self,
        command: Callable[[], CommandResult],
        policy: RetryPolicy,
        description: str,
        ready: Callable[[CommandResult], bool] | None = None,
    ) -> PollOutcome:
        return poll_command(
            command,
            policy,
            description=description,
            ready=ready,
            deadline=self.deadline,
            sleep=self.sleep,
        )
