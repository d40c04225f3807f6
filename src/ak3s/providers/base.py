"""Provider interface.

Every backend implements the same cluster operations. New backends
are added by subclassing ``BaseProvider``; shared orchestration code never
branches on the backend type.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from ak3s.utils.console_like import ConsoleLike, coalesce_console

from .models import Cluster, ProviderType
from .report import TeardownReport


class BaseProvider(ABC):
    """Abstract base class for cluster backends."""

    provider_type: ProviderType

    def __init__(self, console: ConsoleLike | None = None) -> None:
        """Initialize the provider.

        Args:
            console: Where progress is reported (stdout when omitted)
        """
        self.console = coalesce_console(console)

    @property
    def name(self) -> str:
        return str(self.provider_type)

    @abstractmethod
    def create_cluster(self, name: str, addons: list[str] | None = None) -> Cluster:
        """Provision a master unit and bootstrap networking and ingress.

        Args:
            name: Unique cluster name
            addons: Optional add-ons from the registry to install afterwards

        Raises:
            ProvisionError: If the master unit could not be created
            ReadinessTimeout: If the cluster or an add-on never became ready
            AddonInstallError: If an add-on manifest failed to apply
        """

    @abstractmethod
    def list_clusters(self) -> set[str]:
        """Names of every cluster this tool manages; empty if none."""

    @abstractmethod
    def add_node(self, cluster_name: str, node_name: str) -> None:
        """Provision a worker unit and wait until it joins the cluster.

        Raises:
            ClusterNotFoundError: If the master does not exist
            MasterUnreachableError: If the master is not running
            ProvisionError: If the worker unit could not be created
            ReadinessTimeout: If the node never registered as Ready
        """

    @abstractmethod
    def remove_node(self, cluster_name: str, node_name: str) -> TeardownReport:
        """Drain, deregister and remove a worker unit.

        Absence at the cluster level is not an error; only failing to
        remove an existing compute unit is.

        Raises:
            TeardownStepError: If the worker unit could not be removed
        """

    @abstractmethod
    def delete_cluster(self, name: str) -> TeardownReport:
        """Tear down a cluster, continuing past best-effort failures.

        Raises:
            ClusterNotFoundError: If nothing of the cluster exists
            TeardownStepError: If the master unit could not be removed
        """

    @abstractmethod
    def get_cluster_status(self, name: str) -> str:
        """Runtime liveness state of the master unit (e.g., "running").

        Raises:
            ClusterNotFoundError: If the master does not exist
        """

    @abstractmethod
    def get_kubeconfig(self, name: str, export_to: Path | None = None) -> Path:
        """Regenerate and persist the cluster's credential bundle.

        Args:
            name: Cluster name
            export_to: Optional extra location to copy the bundle to

        Raises:
            ClusterNotFoundError: If the master does not exist
            MasterUnreachableError: If the bundle could not be read from it
        """

    @abstractmethod
    def describe_cluster(self, name: str) -> Cluster:
        """Phase, endpoint, kubeconfig path and members of a cluster."""

    @abstractmethod
    def install_addon(self, cluster_name: str, addon_name: str) -> None:
        """Install one add-on from the registry on an existing cluster.

        Raises:
            AddonRegistryError: If no add-on has that name
            AddonInstallError: If it does not support this backend or a step fails
        """
