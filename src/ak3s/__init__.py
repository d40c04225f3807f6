"""ak3s - provision and manage k3s clusters on a local container runtime."""

__version__ = "0.1.0"
