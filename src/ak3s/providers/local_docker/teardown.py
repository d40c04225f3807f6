"""Best-effort cluster teardown.

Every cleanup action is attempted and recorded in a ``TeardownReport``;
a failing action never prevents the next one. The only fatal step is
removing the master unit, without which the cluster still exists.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from ak3s.errors import (
    Ak3sError,
    ClusterNotFoundError,
    TeardownStepError,
    format_command_output,
)
from ak3s.providers.report import TeardownReport
from ak3s.utils.progress import StepProgress

if TYPE_CHECKING:
    from ak3s.config import Ak3sSettings
    from ak3s.infra.constants import ClusterConstants
    from ak3s.infra.shell_commands import CommandResult, ShellCommands

    from .kubeconfig import KubeconfigStore


def parse_node_names(stdout: str) -> list[str]:
    """Node names from ``kubectl get nodes -o name`` output."""
    names = []
    for line in stdout.splitlines():
        line = line.strip()
        if line:
            names.append(line.removeprefix("node/"))
    return names


def record_result(
    report: TeardownReport,
    step: str,
    target: str,
    result: CommandResult,
    *,
    fatal: bool = False,
) -> bool:
    """Record a command outcome in the report and log failures."""
    details = None
    if not result.success:
        details = format_command_output(result.stdout, result.stderr) or (
            f"exit code {result.returncode}"
        )
        log = logger.error if fatal else logger.warning
        log(f"{step} {target} failed: {details}")
    report.record(step, target, ok=result.success, details=details, fatal=fatal)
    return result.success


class NodeRetirer:
    """Drain, deregister and remove one node, recording each action."""

    def __init__(self, commands: ShellCommands, constants: ClusterConstants) -> None:
        self.commands = commands
        self.constants = constants

    def drain_and_unregister(
        self, kubeconfig: Path, node: str, report: TeardownReport
    ) -> None:
        """Evict workloads and delete the node registration (both best-effort)."""
        kubectl = self.commands.kubectl
        record_result(
            report, "drain node", node, kubectl.drain(kubeconfig, node, self.constants.DRAIN_FLAGS)
        )
        record_result(
            report, "delete node registration", node, kubectl.delete_node(kubeconfig, node)
        )

    def remove_unit(self, node: str, report: TeardownReport, *, fatal: bool) -> bool:
        """Remove the node's container; an absent container counts as removed."""
        docker = self.commands.docker
        if not docker.container_exists(node):
            report.record("remove container", node, details="already absent")
            return True
        result = docker.remove_container(node, force=True)
        return record_result(report, "remove container", node, result, fatal=fatal)


class ClusterTeardown:
    """Runs the teardown sequence for one cluster."""

    TOTAL_STEPS = 7

    def __init__(
        self,
        commands: ShellCommands,
        settings: Ak3sSettings,
        constants: ClusterConstants,
        store: KubeconfigStore,
        fetch_kubeconfig: Callable[[str], Path],
    ) -> None:
        self.commands = commands
        self.settings = settings
        self.constants = constants
        self.store = store
        self.fetch_kubeconfig = fetch_kubeconfig
        self.retirer = NodeRetirer(commands, constants)

    def run(self, name: str, progress: StepProgress) -> TeardownReport:
        """Tear the cluster down.

        Raises:
            ClusterNotFoundError: If neither the master nor any unit exists
            TeardownStepError: If the master unit could not be removed
        """
        docker = self.commands.docker
        master_exists = docker.container_exists(name)
        members = docker.list_containers([f"label={self.constants.cluster_label(name)}"])
        if not master_exists and not members:
            raise ClusterNotFoundError(f"Cluster '{name}' not found")

        report = TeardownReport(subject=f"cluster {name}")

        progress.advance("Getting kubeconfig...")
        kubeconfig = self._credentials(name, report, progress)

        progress.advance("Removing workloads from application namespaces...")
        if kubeconfig:
            self._delete_namespaced_resources(kubeconfig, report)

        progress.advance("Removing custom resource definitions...")
        if kubeconfig:
            self._delete_crds(kubeconfig, report)

        progress.advance("Draining and removing worker nodes...")
        removed: set[str] = set()
        if kubeconfig:
            removed |= self._retire_registered_nodes(name, kubeconfig, report)
        for member in members:
            if member != name and member not in removed:
                self.retirer.remove_unit(member, report, fatal=False)

        progress.advance("Removing master node container...")
        if master_exists:
            result = docker.remove_container(name, force=True)
            if not record_result(
                report, "remove container", name, result, fatal=True
            ):
                raise TeardownStepError(
                    f"Failed to remove master node '{name}'",
                    details=format_command_output(result.stdout, result.stderr),
                    report=report,
                )
        else:
            report.record("remove container", name, details="already absent")

        progress.advance("Cleaning up local credentials...")
        try:
            removed_dir = self.store.remove(name)
            report.record(
                "remove local state",
                str(self.store.cluster_dir(name)),
                details=None if removed_dir else "nothing to remove",
            )
        except OSError as e:
            logger.warning(f"Could not remove local state of {name}: {e}")
            report.record(
                "remove local state", str(self.store.cluster_dir(name)), ok=False, details=str(e)
            )

        progress.advance("Removing volumes and networks...")
        self._prune_runtime_resources(name, report)

        for warning in report.warnings:
            progress.warn(warning.describe())
        return report

    def _credentials(
        self, name: str, report: TeardownReport, progress: StepProgress
    ) -> Path | None:
        if self.commands.docker.status(name) != "running":
            report.record(
                "get kubeconfig", name, ok=False, details="master is not running"
            )
            progress.note("Master not running, skipping cluster-level cleanup")
            return None
        try:
            path = self.fetch_kubeconfig(name)
        except Ak3sError as e:
            report.record("get kubeconfig", name, ok=False, details=e.message)
            progress.note("Master unreachable, skipping cluster-level cleanup")
            return None
        report.record("get kubeconfig", name)
        return path

    def _delete_namespaced_resources(self, kubeconfig: Path, report: TeardownReport) -> None:
        kubectl = self.commands.kubectl
        result = kubectl.get_namespaces(kubeconfig)
        if not record_result(report, "list namespaces", "", result):
            return
        system = set(self.settings.system_namespaces)
        for namespace in result.stdout.split():
            if namespace in system:
                continue
            record_result(
                report,
                "delete resources in namespace",
                namespace,
                kubectl.delete_all_in_namespace(kubeconfig, namespace),
            )

    def _delete_crds(self, kubeconfig: Path, report: TeardownReport) -> None:
        kubectl = self.commands.kubectl
        result = kubectl.get_crds(kubeconfig)
        if not record_result(report, "list CRDs", "", result):
            return
        for crd in result.stdout.split():
            record_result(report, "delete CRD", crd, kubectl.delete_crd(kubeconfig, crd))

    def _retire_registered_nodes(
        self, name: str, kubeconfig: Path, report: TeardownReport
    ) -> set[str]:
        result = self.commands.kubectl.get_node_names(kubeconfig)
        if not record_result(report, "list nodes", "", result):
            return set()
        retired = set()
        # The master keeps serving the API until its own unit is removed.
        for node in parse_node_names(result.stdout):
            if node == name:
                continue
            self.retirer.drain_and_unregister(kubeconfig, node, report)
            self.retirer.remove_unit(node, report, fatal=False)
            retired.add(node)
        return retired

    def _prune_runtime_resources(self, name: str, report: TeardownReport) -> None:
        docker = self.commands.docker
        c = self.constants
        label_filter = f"label={c.cluster_label(name)}"

        volumes = set(docker.list_volumes([label_filter]))
        for suffix in (c.DATA_VOLUME_SUFFIX, c.CONFIG_VOLUME_SUFFIX):
            volumes.add(c.volume_name(name, suffix))
        for volume in sorted(volumes):
            record_result(report, "remove volume", volume, docker.remove_volume(volume))

        for network in docker.list_networks([label_filter]):
            record_result(
                report, "remove network", network, docker.remove_network(network)
            )
