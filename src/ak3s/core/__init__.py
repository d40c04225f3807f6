"""Backend-agnostic cluster orchestration entry point."""

from .manager import ClusterManager

__all__ = ["ClusterManager"]
