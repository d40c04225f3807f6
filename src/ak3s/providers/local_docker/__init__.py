"""k3s clusters as containers on the local Docker engine."""

from .provider import LocalDockerProvider

__all__ = ["LocalDockerProvider"]
