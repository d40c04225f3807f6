"""Cluster data model.

Nothing here is persisted: every value is re-derived from the container
runtime and the cluster CLI when it is requested.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path


class ProviderType(StrEnum):
    """Backends a cluster can be provisioned on."""

    LOCAL_DOCKER = "localdocker"
    AWS = "aws"
    IBM = "ibm"


class ClusterPhase(StrEnum):
    """Lifecycle phase of a cluster, derived from its master unit."""

    PROVISIONING = "provisioning"
    RUNNING = "running"
    STOPPED = "stopped"
    UNKNOWN = "unknown"

    @classmethod
    def from_runtime_status(cls, status: str | None) -> ClusterPhase:
        """Map a container state ("running", "exited", ...) to a phase."""
        if status == "running":
            return cls.RUNNING
        if status in ("created", "restarting"):
            return cls.PROVISIONING
        if status in ("exited", "paused", "dead", "removing"):
            return cls.STOPPED
        return cls.UNKNOWN


@dataclass
class Cluster:
    """A k3s cluster as seen through the runtime and the cluster CLI.

    Attributes:
        name: Cluster name, also the master unit's container name
        phase: Lifecycle phase of the master unit
        endpoint: Externally reachable API endpoint (host:port), if published
        kubeconfig_path: Where the credential bundle was persisted, if it was
        nodes: Names of registered cluster members
    """

    name: str
    phase: ClusterPhase = ClusterPhase.UNKNOWN
    endpoint: str | None = None
    kubeconfig_path: Path | None = None
    nodes: list[str] = field(default_factory=list)
