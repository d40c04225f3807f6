"""CLI command groups.

- cluster: create, list, delete, access, status and describe clusters
- node: add and remove worker nodes
- addons: list and install optional add-ons
"""

from .addons import addons_app
from .cluster import cluster_app
from .node import node_app

__all__ = ["cluster_app", "node_app", "addons_app"]
