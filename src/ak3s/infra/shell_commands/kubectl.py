"""Kubectl command abstractions.

This module provides the cluster CLI operations used during bootstrap and
teardown. Every call is made against an explicit kubeconfig so that
operating on one cluster never depends on the user's current context.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from .types import CommandResult

if TYPE_CHECKING:
    from .runner import CommandRunner


class KubectlCommands:
    """Kubectl-related shell commands.

    Provides operations for:
    - Applying manifests (files, URLs, or stdin)
    - Listing nodes, namespaces, CRDs and pod phases
    - Node drain and deregistration
    - Bulk resource deletion
    """

    def __init__(self, runner: CommandRunner) -> None:
        """Initialize kubectl commands.

        Args:
            runner: Command runner for executing shell commands
        """
        self._runner = runner

    def _run_kubectl(
        self,
        kubeconfig: Path,
        args: list[str],
        *,
        input_data: str | None = None,
    ) -> CommandResult:
        """Run a kubectl command against the given kubeconfig.

        Args:
            kubeconfig: Path of the credential bundle
            args: Command arguments (without 'kubectl' prefix)
            input_data: Optional input to send to stdin
        """
        cmd = ["kubectl", "--kubeconfig", str(kubeconfig), *args]
        return self._runner.run(cmd, input_data=input_data)

    # =========================================================================
    # Manifests
    # =========================================================================

    def apply(self, kubeconfig: Path, source: str | Path) -> CommandResult:
        """Apply a manifest from a file path or URL.

        Example:
            >>> kubectl.apply(kubeconfig, "https://example.com/manifest.yaml")
        """
        return self._run_kubectl(kubeconfig, ["apply", "-f", str(source)])

    def apply_content(self, kubeconfig: Path, content: str) -> CommandResult:
        """Apply a manifest passed on stdin."""
        return self._run_kubectl(kubeconfig, ["apply", "-f", "-"], input_data=content)

    # =========================================================================
    # Queries
    # =========================================================================

    def get_node_names(self, kubeconfig: Path) -> CommandResult:
        """List registered nodes; stdout holds one ``node/<name>`` per line."""
        return self._run_kubectl(kubeconfig, ["get", "nodes", "-o", "name"])

    def get_node_ready_status(self, kubeconfig: Path, node: str) -> CommandResult:
        """Status of a node's Ready condition ("True", "False", "Unknown")."""
        return self._run_kubectl(
            kubeconfig,
            [
                "get",
                "node",
                node,
                "-o",
                'jsonpath={.status.conditions[?(@.type=="Ready")].status}',
            ],
        )

    def get_namespaces(self, kubeconfig: Path) -> CommandResult:
        """List namespaces; stdout holds space-separated names."""
        return self._run_kubectl(
            kubeconfig,
            ["get", "namespaces", "-o", "jsonpath={.items[*].metadata.name}"],
        )

    def get_crds(self, kubeconfig: Path) -> CommandResult:
        """List custom resource definitions; one name per line."""
        return self._run_kubectl(
            kubeconfig, ["get", "crd", "-o", "jsonpath={range .items[*]}{.metadata.name}{\"\\n\"}{end}"]
        )

    def get_pod_phases(self, kubeconfig: Path, namespace: str) -> CommandResult:
        """Phases of every pod in a namespace, space-separated."""
        return self._run_kubectl(
            kubeconfig,
            ["get", "pods", "-n", namespace, "-o", "jsonpath={.items[*].status.phase}"],
        )

    # =========================================================================
    # Node Management
    # =========================================================================

    def drain(
        self, kubeconfig: Path, node: str, flags: tuple[str, ...] | list[str]
    ) -> CommandResult:
        """Evict workloads from a node."""
        return self._run_kubectl(kubeconfig, ["drain", node, *flags])

    def delete_node(self, kubeconfig: Path, node: str) -> CommandResult:
        """Remove a node's cluster-level registration."""
        return self._run_kubectl(kubeconfig, ["delete", "node", node])

    # =========================================================================
    # Resource Deletion
    # =========================================================================

    def delete_all_in_namespace(self, kubeconfig: Path, namespace: str) -> CommandResult:
        """Force-delete every workload resource in a namespace."""
        return self._run_kubectl(
            kubeconfig,
            [
                "delete",
                "all",
                "--all",
                "-n",
                namespace,
                "--force",
                "--grace-period=0",
                "--wait=false",
            ],
        )

    def delete_crd(self, kubeconfig: Path, name: str) -> CommandResult:
        """Delete a custom resource definition."""
        return self._run_kubectl(
            kubeconfig, ["delete", "crd", name, "--wait=false"]
        )
