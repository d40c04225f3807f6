"""Built-in add-ons installed on every new cluster.

Networking (Calico), load balancing (MetalLB) and ingress (ingress-nginx)
are applied in that order. The k3s server runs with its own flannel,
servicelb and traefik disabled, so these add-ons own those concerns.
"""

from __future__ import annotations

from dataclasses import dataclass
from importlib.resources import files

from jinja2 import Environment, PackageLoader, StrictUndefined

from ak3s.config import Ak3sSettings
from ak3s.infra.constants import DEFAULT_CONSTANTS, ClusterConstants

_MANIFEST_PACKAGE = "ak3s.providers.local_docker"


def get_template_env() -> Environment:
    """Jinja2 environment over the bundled manifest templates."""
    return Environment(
        loader=PackageLoader(_MANIFEST_PACKAGE, "manifests"),
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )


def bundled_manifest(filename: str) -> str:
    """Text of a manifest shipped with the package."""
    return files(_MANIFEST_PACKAGE).joinpath("manifests", filename).read_text()


@dataclass(frozen=True)
class BuiltinAddon:
    """One bootstrap add-on.

    Attributes:
        name: Display name
        source: URL or path passed to ``kubectl apply -f``; None when
            ``content`` is applied from stdin instead
        content: Inline manifest text
        wait_namespace: Namespace whose pods must reach Running before the
            next step; None for fire-and-forget add-ons
        post_install: Manifest applied once the add-on's pods are running
    """

    name: str
    source: str | None = None
    content: str | None = None
    wait_namespace: str | None = None
    post_install: str | None = None


def render_metallb_pool(
    address_range: str, constants: ClusterConstants = DEFAULT_CONSTANTS
) -> str:
    """IPAddressPool and L2Advertisement for the given address range."""
    template = get_template_env().get_template("metallb-pool.yaml.j2")
    return template.render(
        pool_name="default",
        namespace=constants.METALLB_NAMESPACE,
        address_range=address_range,
    )


def builtin_addons(
    settings: Ak3sSettings, constants: ClusterConstants = DEFAULT_CONSTANTS
) -> list[BuiltinAddon]:
    """Bootstrap add-ons in installation order."""
    if settings.calico_manifest:
        calico = BuiltinAddon(
            name="Calico CNI",
            source=settings.calico_manifest,
            wait_namespace=constants.CALICO_NAMESPACE,
        )
    else:
        calico = BuiltinAddon(
            name="Calico CNI",
            content=bundled_manifest("calico.yaml"),
            wait_namespace=constants.CALICO_NAMESPACE,
        )

    return [
        calico,
        BuiltinAddon(
            name="MetalLB",
            source=settings.metallb_manifest_url,
            wait_namespace=constants.METALLB_NAMESPACE,
            post_install=render_metallb_pool(settings.metallb_address_range, constants),
        ),
        BuiltinAddon(
            name="NGINX Ingress Controller",
            source=settings.ingress_manifest_url,
        ),
    ]
