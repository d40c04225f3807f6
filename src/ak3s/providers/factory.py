"""Factory for obtaining the configured provider backend."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ak3s.errors import UnsupportedProviderError

from .base import BaseProvider
from .models import ProviderType

if TYPE_CHECKING:
    from ak3s.addons.registry import AddonRegistry
    from ak3s.config import Ak3sSettings
    from ak3s.utils.console_like import ConsoleLike


def get_provider(
    settings: Ak3sSettings,
    console: ConsoleLike | None = None,
    registry: AddonRegistry | None = None,
) -> BaseProvider:
    """Build the provider named by ``settings.provider``.

    Raises:
        UnsupportedProviderError: For unknown or not yet implemented backends
    """
    try:
        provider_type = ProviderType(settings.provider.lower())
    except ValueError:
        raise UnsupportedProviderError(
            f"Unknown provider: {settings.provider}",
            details=f"Known providers: {', '.join(p.value for p in ProviderType)}",
        ) from None

    if provider_type is ProviderType.LOCAL_DOCKER:
        from .local_docker import LocalDockerProvider

        return LocalDockerProvider(settings, console=console, registry=registry)

    raise UnsupportedProviderError(
        f"Provider '{provider_type}' is not implemented yet",
        details="Only 'localdocker' is currently available",
    )
