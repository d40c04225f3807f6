"""Per-cluster credential bundle storage.

Each cluster's kubeconfig is kept at ``<home>/clusters/<name>/kubeconfig.yaml``
so that working with one cluster never invalidates access to another.
Writes go through a temporary file and an atomic rename; the file is only
readable by its owner.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit, urlunsplit

import yaml

from ak3s.errors import MasterUnreachableError
from ak3s.infra.constants import DEFAULT_CONSTANTS, ClusterConstants

KUBECONFIG_FILENAME = "kubeconfig.yaml"


class KubeconfigStore:
    """Reads, rewrites and persists kubeconfigs keyed by cluster name."""

    def __init__(
        self, clusters_dir: Path, constants: ClusterConstants | None = None
    ) -> None:
        self.clusters_dir = clusters_dir
        self.constants = constants or DEFAULT_CONSTANTS

    def cluster_dir(self, cluster_name: str) -> Path:
        return self.clusters_dir / cluster_name

    def path_for(self, cluster_name: str) -> Path:
        return self.cluster_dir(cluster_name) / KUBECONFIG_FILENAME

    def exists(self, cluster_name: str) -> bool:
        return self.path_for(cluster_name).is_file()

    def rewrite(self, raw: str, cluster_name: str, host: str, port: int) -> str:
        """Point a k3s kubeconfig at the published endpoint.

        The loopback server address is replaced with ``host:port`` and the
        ``default`` cluster, user and context entries are renamed after the
        cluster so bundles of several clusters can be merged.

        Raises:
            MasterUnreachableError: If the bundle is not a kubeconfig document
        """
        try:
            document: Any = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise MasterUnreachableError(
                f"Master '{cluster_name}' returned an unreadable kubeconfig",
                details=str(e),
            ) from e
        if not isinstance(document, dict) or not document.get("clusters"):
            raise MasterUnreachableError(
                f"Master '{cluster_name}' returned an unreadable kubeconfig",
                details=raw[:500] or None,
            )

        default = self.constants.DEFAULT_KUBECONFIG_ENTRY

        for entry in document.get("clusters") or []:
            cluster = entry.get("cluster") or {}
            if "server" in cluster:
                cluster["server"] = self._rewrite_server(cluster["server"], host, port)
            if entry.get("name") == default:
                entry["name"] = cluster_name

        for entry in document.get("users") or []:
            if entry.get("name") == default:
                entry["name"] = cluster_name

        for entry in document.get("contexts") or []:
            context = entry.get("context") or {}
            for key in ("cluster", "user"):
                if context.get(key) == default:
                    context[key] = cluster_name
            if entry.get("name") == default:
                entry["name"] = cluster_name

        if document.get("current-context") == default:
            document["current-context"] = cluster_name

        return yaml.safe_dump(document, default_flow_style=False, sort_keys=False)

    def _rewrite_server(self, server: str, host: str, port: int) -> str:
        parts = urlsplit(server)
        if parts.hostname not in (self.constants.LOOPBACK_ADDRESS, "localhost"):
            return server
        return urlunsplit(parts._replace(netloc=f"{host}:{port}"))

    def save(self, cluster_name: str, content: str) -> Path:
        """Persist a bundle with owner-only permissions, replacing any prior one."""
        target = self.path_for(cluster_name)
        target.parent.mkdir(parents=True, exist_ok=True)
        self._atomic_write(target, content)
        return target

    def export(self, cluster_name: str, destination: Path) -> Path:
        """Copy a stored bundle to another location (e.g., ``~/.kube/config``)."""
        destination = destination.expanduser()
        destination.parent.mkdir(parents=True, exist_ok=True)
        self._atomic_write(destination, self.path_for(cluster_name).read_text())
        return destination

    def remove(self, cluster_name: str) -> bool:
        """Delete the cluster's directory; returns False if there was none."""
        directory = self.cluster_dir(cluster_name)
        if not directory.exists():
            return False
        shutil.rmtree(directory)
        return True

    @staticmethod
    def _atomic_write(target: Path, content: str) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=".kubeconfig-")
        try:
            with os.fdopen(fd, "w") as handle:
                handle.write(content)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
