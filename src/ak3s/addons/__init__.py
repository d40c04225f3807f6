"""Optional add-ons declared in ``plugins.yaml``."""

from .executor import AddonExecutor
from .models import Addon, AddonCommand, AddonList, AddonType
from .registry import AddonRegistry

__all__ = [
    "Addon",
    "AddonCommand",
    "AddonExecutor",
    "AddonList",
    "AddonRegistry",
    "AddonType",
]
