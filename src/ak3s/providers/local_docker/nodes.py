"""Worker node membership.

Joining reads the join token and address from the running master, starts
an agent unit configured with them, and polls until the node reports
Ready. Removal drains and deregisters the node when it is registered and
always removes its unit.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from ak3s.errors import (
    Ak3sError,
    ClusterNotFoundError,
    MasterUnreachableError,
    ProvisionError,
    TeardownStepError,
    format_command_output,
)
from ak3s.infra.retry import Deadline, poll_command
from ak3s.infra.shell_commands import CommandResult, ContainerSpec
from ak3s.providers.report import TeardownReport
from ak3s.utils.progress import StepProgress

from .teardown import NodeRetirer, parse_node_names, record_result

if TYPE_CHECKING:
    from ak3s.config import Ak3sSettings
    from ak3s.infra.constants import ClusterConstants
    from ak3s.infra.shell_commands import ShellCommands


def _is_ready(result: CommandResult) -> bool:
    return result.success and result.stdout.strip().strip("'") == "True"


class NodeManager:
    """Adds and removes worker units of a cluster."""

    JOIN_STEPS = 5
    REMOVE_STEPS = 4

    def __init__(
        self,
        commands: ShellCommands,
        settings: Ak3sSettings,
        constants: ClusterConstants,
        fetch_kubeconfig: Callable[[str], Path],
        *,
        sleep: Callable[[float], None],
    ) -> None:
        self.commands = commands
        self.settings = settings
        self.constants = constants
        self.fetch_kubeconfig = fetch_kubeconfig
        self.sleep = sleep
        self.retirer = NodeRetirer(commands, constants)

    # =========================================================================
    # Join
    # =========================================================================

    def require_running_master(self, cluster_name: str) -> None:
        """Raise unless the cluster's master unit is running."""
        status = self.commands.docker.status(cluster_name)
        if status is None:
            raise ClusterNotFoundError(f"Cluster '{cluster_name}' not found")
        if status != "running":
            raise MasterUnreachableError(
                f"Master of cluster '{cluster_name}' is not running (status: {status})"
            )

    def agent_spec(
        self, cluster_name: str, node_name: str, master_ip: str, token: str
    ) -> ContainerSpec:
        c = self.constants
        return ContainerSpec(
            name=node_name,
            image=self.settings.k3s_image,
            command=["agent"],
            env={
                "K3S_URL": f"https://{master_ip}:{c.API_CONTAINER_PORT}",
                "K3S_TOKEN": token,
                "K3S_NODE_NAME": node_name,
            },
            labels={c.LABEL_CLUSTER: cluster_name, c.LABEL_ROLE: c.ROLE_AGENT},
            tmpfs=list(c.TMPFS_MOUNTS),
        )

    def join(
        self,
        cluster_name: str,
        node_name: str,
        progress: StepProgress,
        deadline: Deadline | None = None,
    ) -> None:
        """Start a worker unit and wait until it registers as Ready.

        Raises:
            ClusterNotFoundError: If the master does not exist
            MasterUnreachableError: If the master is not running or unreadable
            ProvisionError: If the node name is taken or docker refuses the unit
            ReadinessTimeout: If the node never became Ready
        """
        docker = self.commands.docker
        self.require_running_master(cluster_name)
        if docker.container_exists(node_name):
            raise ProvisionError(f"A container named '{node_name}' already exists")

        progress.advance("Getting token from master node...")
        result = docker.exec(cluster_name, ["cat", self.constants.NODE_TOKEN_PATH])
        token = result.stdout.strip()
        if not result.success or not token:
            raise MasterUnreachableError(
                f"Failed to read join token from '{cluster_name}'",
                details=format_command_output(result.stdout, result.stderr),
            )

        progress.advance("Getting master node IP...")
        master_ip = docker.ip_address(cluster_name)
        if not master_ip:
            raise MasterUnreachableError(
                f"Failed to determine the address of '{cluster_name}'"
            )

        progress.advance("Creating worker node container...")
        result = docker.run_container(
            self.agent_spec(cluster_name, node_name, master_ip, token)
        )
        if not result.success:
            raise ProvisionError(
                f"Failed to create worker node '{node_name}'",
                details=format_command_output(result.stdout, result.stderr),
            )

        progress.advance("Getting kubeconfig...")
        kubeconfig = self.fetch_kubeconfig(cluster_name)

        progress.advance("Waiting for node to join the cluster...")
        outcome = poll_command(
            lambda: self.commands.kubectl.get_node_ready_status(kubeconfig, node_name),
            self.settings.node_join,
            description=f"node '{node_name}' to join '{cluster_name}'",
            ready=_is_ready,
            deadline=deadline,
            sleep=self.sleep,
        )
        progress.note(f"Node Ready after {outcome.attempts} attempt(s)")

    # =========================================================================
    # Removal
    # =========================================================================

    def remove(
        self, cluster_name: str, node_name: str, progress: StepProgress
    ) -> TeardownReport:
        """Drain, deregister and remove a worker unit.

        A node that was never registered, or whose unit is already gone, is
        not an error, so removing the same node twice succeeds.

        Raises:
            Ak3sError: If asked to remove the master, another cluster's unit
                or a container ak3s did not create
            TeardownStepError: If the worker unit exists but cannot be removed
        """
        if node_name == cluster_name:
            raise Ak3sError(
                f"'{node_name}' is the master of cluster '{cluster_name}'",
                details="Use 'ak3s cluster delete' to remove the whole cluster",
            )
        docker = self.commands.docker
        if docker.container_exists(node_name):
            owner = docker.label(node_name, self.constants.LABEL_CLUSTER)
            if owner is None:
                raise Ak3sError(
                    f"Container '{node_name}' is not managed by ak3s",
                    details="Only worker nodes added with 'ak3s node add' can be removed",
                )
            if owner != cluster_name:
                raise Ak3sError(
                    f"Node '{node_name}' belongs to cluster '{owner}', not '{cluster_name}'"
                )

        report = TeardownReport(subject=f"node {node_name}")

        progress.advance("Getting kubeconfig...")
        kubeconfig = None
        try:
            kubeconfig = self.fetch_kubeconfig(cluster_name)
            report.record("get kubeconfig", cluster_name)
        except Ak3sError as e:
            report.record("get kubeconfig", cluster_name, ok=False, details=e.message)
            progress.note("Master unreachable, skipping cluster-level removal")

        progress.advance("Checking if node exists in Kubernetes...")
        registered = False
        if kubeconfig is not None:
            result = self.commands.kubectl.get_node_names(kubeconfig)
            if record_result(report, "list nodes", cluster_name, result):
                registered = node_name in parse_node_names(result.stdout)
                if not registered:
                    progress.note(f"Node {node_name} not found in Kubernetes cluster")

        progress.advance("Draining node from Kubernetes...")
        if registered and kubeconfig is not None:
            self.retirer.drain_and_unregister(kubeconfig, node_name, report)

        progress.advance("Removing node container...")
        if not self.retirer.remove_unit(node_name, report, fatal=True):
            failure = report.fatal_failures[-1]
            raise TeardownStepError(
                f"Failed to remove container of node '{node_name}'",
                details=failure.details,
                report=report,
            )

        for warning in report.warnings:
            progress.warn(warning.describe())
        return report
