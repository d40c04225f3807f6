"""Data types for shell command results.

This module contains the dataclasses shared by the command modules.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class CommandResult:
    """Result of a command execution."""

    success: bool
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0


@dataclass
class ContainerSpec:
    """Everything ``docker run`` needs to create a k3s unit.

    Attributes:
        name: Container name, also the k3s node name
        image: Image reference
        command: Arguments passed to the image entrypoint (e.g. ``server``)
        env: Environment variables
        labels: Container labels
        ports: Host port -> container port mappings
        volumes: Volume (or host path) -> container path mounts
        tmpfs: Paths mounted as tmpfs
        privileged: Whether to run privileged
    """

    name: str
    image: str
    command: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    labels: dict[str, str] = field(default_factory=dict)
    ports: dict[int, int] = field(default_factory=dict)
    volumes: dict[str, str] = field(default_factory=dict)
    tmpfs: list[str] = field(default_factory=list)
    privileged: bool = True
