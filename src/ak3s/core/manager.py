"""Cluster manager.

The single entry point callers (the CLI, scripts, tests) use to drive the
lifecycle of clusters. It forwards every operation to the configured
provider and never branches on which backend that is.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from ak3s.providers import BaseProvider, Cluster, TeardownReport, get_provider

if TYPE_CHECKING:
    from ak3s.addons import AddonRegistry
    from ak3s.config import Ak3sSettings
    from ak3s.utils.console_like import ConsoleLike


class ClusterManager:
    """Facade over one provider backend."""

    def __init__(self, provider: BaseProvider) -> None:
        self.provider = provider

    @classmethod
    def from_settings(
        cls,
        settings: Ak3sSettings,
        console: ConsoleLike | None = None,
        registry: AddonRegistry | None = None,
    ) -> ClusterManager:
        """Build a manager for the provider named in ``settings``.

        When no registry is given, the add-on file is looked up in the
        usual search paths; a missing file only disables optional add-ons.

        Raises:
            UnsupportedProviderError: If the provider is unknown or not implemented
        """
        if registry is None:
            from ak3s.addons import AddonRegistry

            registry = AddonRegistry.load_optional()
        return cls(get_provider(settings, console=console, registry=registry))

    @property
    def provider_name(self) -> str:
        return self.provider.name

    def create_cluster(self, name: str, addons: list[str] | None = None) -> Cluster:
        logger.info(f"Creating cluster {name} on {self.provider_name}")
        return self.provider.create_cluster(name, addons)

    def list_clusters(self) -> set[str]:
        return self.provider.list_clusters()

    def add_node(self, cluster_name: str, node_name: str) -> None:
        logger.info(f"Adding node {node_name} to {cluster_name}")
        self.provider.add_node(cluster_name, node_name)

    def remove_node(self, cluster_name: str, node_name: str) -> TeardownReport:
        logger.info(f"Removing node {node_name} from {cluster_name}")
        return self.provider.remove_node(cluster_name, node_name)

    def delete_cluster(self, name: str) -> TeardownReport:
        logger.info(f"Deleting cluster {name}")
        return self.provider.delete_cluster(name)

    def get_cluster_status(self, name: str) -> str:
        return self.provider.get_cluster_status(name)

    def get_kubeconfig(self, name: str, export_to: Path | None = None) -> Path:
        return self.provider.get_kubeconfig(name, export_to)

    def describe_cluster(self, name: str) -> Cluster:
        return self.provider.describe_cluster(name)

    def install_addon(self, cluster_name: str, addon_name: str) -> None:
        logger.info(f"Installing add-on {addon_name} on {cluster_name}")
        self.provider.install_addon(cluster_name, addon_name)
