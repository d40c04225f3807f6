"""Cluster provider backends.

- base: the BaseProvider interface every backend implements
- local_docker: k3s units as containers on the local Docker engine
- factory: selects the backend named in the settings
"""

from .base import BaseProvider
from .factory import get_provider
from .models import Cluster, ClusterPhase, ProviderType
from .report import StepOutcome, TeardownReport

__all__ = [
    "BaseProvider",
    "get_provider",
    "Cluster",
    "ClusterPhase",
    "ProviderType",
    "StepOutcome",
    "TeardownReport",
]
