"""Add-on declaration models.

An add-on file is an ordered list of records:

    plugins:
      - name: metrics-server
        description: Resource metrics API
        type: cluster
        allowed_backends: [localdocker]
        manifest_url: https://.../components.yaml
        commands:
          - name: install
            description: Apply the manifest
            command: kubectl
            args: [apply, -f, https://.../components.yaml]
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import AliasChoices, BaseModel, Field

from ak3s.providers.models import ProviderType


class AddonType(StrEnum):
    """Scope an add-on applies to."""

    CLUSTER = "cluster"
    NODES = "nodes"


class AddonCommand(BaseModel):
    """One install step: an executable, its arguments and optional stdin."""

    name: str
    description: str = ""
    command: str
    args: list[str] = Field(default_factory=list)
    stdin: str | None = None


class Addon(BaseModel):
    """A named, ordered list of install steps."""

    name: str
    description: str = ""
    type: AddonType = AddonType.CLUSTER
    allowed_backends: list[ProviderType] = Field(
        default_factory=list,
        validation_alias=AliasChoices("allowed_backends", "allowed_adapters"),
    )
    manifest_url: str | None = None
    commands: list[AddonCommand] = Field(default_factory=list)

    def supports(self, backend: ProviderType) -> bool:
        return backend in self.allowed_backends


class AddonList(BaseModel):
    """Root of the add-on declaration file."""

    plugins: list[Addon] = Field(default_factory=list)
