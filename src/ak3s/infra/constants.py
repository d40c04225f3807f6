"""Cluster constants.

This module centralizes the magic strings used when talking to the
container runtime and to k3s: image names, in-container paths, labels,
ports, and the references of the built-in add-ons.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ClusterConstants:
    """Constants for k3s clusters running in containers.

    All attributes are class-level and immutable.
    """

    # Image and server flags
    K3S_IMAGE: str = "rancher/k3s:v1.32.3-k3s1"
    SERVER_FLAGS: tuple[str, ...] = (
        "--flannel-backend=none",
        "--disable=traefik",
        "--disable=servicelb",
    )

    # Ports published by the master unit
    API_CONTAINER_PORT: int = 6443
    HTTP_CONTAINER_PORT: int = 80
    HTTPS_CONTAINER_PORT: int = 443

    # Paths inside the k3s containers
    K3S_DATA_DIR: str = "/var/lib/rancher/k3s"
    K3S_CONFIG_DIR: str = "/etc/rancher/k3s"
    KUBECONFIG_PATH: str = "/etc/rancher/k3s/k3s.yaml"
    NODE_TOKEN_PATH: str = "/var/lib/rancher/k3s/server/node-token"
    TMPFS_MOUNTS: tuple[str, ...] = ("/run", "/var/run")

    # Kubeconfig rewrite
    LOOPBACK_ADDRESS: str = "127.0.0.1"
    DEFAULT_KUBECONFIG_ENTRY: str = "default"

    # Labels attached to every container and volume
    LABEL_CLUSTER: str = "ak3s.cluster"
    LABEL_ROLE: str = "ak3s.role"
    ROLE_SERVER: str = "server"
    ROLE_AGENT: str = "agent"

    # Volume name suffixes for per-cluster state
    DATA_VOLUME_SUFFIX: str = "data"
    CONFIG_VOLUME_SUFFIX: str = "config"

    # Namespaces left untouched during teardown
    SYSTEM_NAMESPACES: tuple[str, ...] = (
        "kube-system",
        "kube-public",
        "kube-node-lease",
    )

    # Built-in add-ons
    CALICO_NAMESPACE: str = "calico-system"
    METALLB_NAMESPACE: str = "metallb-system"
    METALLB_MANIFEST_URL: str = (
        "https://raw.githubusercontent.com/metallb/metallb/v0.13.12/"
        "config/manifests/metallb-native.yaml"
    )
    METALLB_ADDRESS_RANGE: str = "172.18.255.200-172.18.255.250"
    INGRESS_MANIFEST_URL: str = (
        "https://raw.githubusercontent.com/kubernetes/ingress-nginx/"
        "controller-v1.9.4/deploy/static/provider/cloud/deploy.yaml"
    )

    # Pod phase reported once an add-on is up
    RUNNING_PHASE: str = "Running"

    # Drain flags: ignore daemonsets, accept emptyDir data loss, force eviction
    DRAIN_FLAGS: tuple[str, ...] = (
        "--ignore-daemonsets",
        "--delete-emptydir-data",
        "--force",
        "--timeout=120s",
    )

    def volume_name(self, cluster_name: str, suffix: str) -> str:
        """Name of a per-cluster state volume."""
        return f"ak3s-{cluster_name}-{suffix}"

    def cluster_label(self, cluster_name: str) -> str:
        """Label filter selecting every unit of a cluster."""
        return f"{self.LABEL_CLUSTER}={cluster_name}"

    @property
    def server_label(self) -> str:
        """Label filter selecting master units."""
        return f"{self.LABEL_ROLE}={self.ROLE_SERVER}"


DEFAULT_CONSTANTS = ClusterConstants()
