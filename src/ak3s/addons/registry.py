"""Add-on registry.

Loads add-on declarations from the first ``plugins.yaml`` found in the
working directory, ``/etc/ak3s`` or ``~/.ak3s``.
"""

from __future__ import annotations

from pathlib import Path

import yaml
from loguru import logger
from pydantic import ValidationError

from ak3s.config import config_search_paths
from ak3s.errors import AddonRegistryError
from ak3s.providers.models import ProviderType

from .models import Addon, AddonList, AddonType

ADDONS_FILENAME = "plugins.yaml"


class AddonRegistry:
    """Read-only view over the declared add-ons."""

    def __init__(self, addons: list[Addon], source: Path | None = None) -> None:
        self._addons = list(addons)
        self.source = source

    @classmethod
    def load(cls, path: Path | None = None) -> AddonRegistry:
        """Load the registry from ``path`` or the first file in the search list.

        Files that are unreadable or malformed are skipped during the search
        but reported when passed explicitly.

        Raises:
            AddonRegistryError: If no usable declaration file exists
        """
        if path is not None:
            return cls(cls._parse(path), source=path)

        searched = config_search_paths(ADDONS_FILENAME)
        for candidate in searched:
            if not candidate.is_file():
                continue
            try:
                addons = cls._parse(candidate)
            except AddonRegistryError as e:
                logger.warning(f"Skipping {candidate}: {e.message}")
                continue
            logger.debug(f"Loaded {len(addons)} add-on(s) from {candidate}")
            return cls(addons, source=candidate)

        raise AddonRegistryError(
            f"No {ADDONS_FILENAME} file found",
            details="Searched:\n" + "\n".join(f"  - {p}" for p in searched),
        )

    @staticmethod
    def _parse(path: Path) -> list[Addon]:
        try:
            raw = yaml.safe_load(path.read_text()) or {}
        except (OSError, yaml.YAMLError) as e:
            raise AddonRegistryError(f"Could not read {path}", details=str(e)) from e
        try:
            return AddonList.model_validate(raw).plugins
        except ValidationError as e:
            raise AddonRegistryError(f"Invalid add-on file {path}", details=str(e)) from e

    def all(self) -> list[Addon]:
        return list(self._addons)

    def get(self, name: str) -> Addon:
        """Return the add-on called ``name``.

        Raises:
            AddonRegistryError: If no add-on has that name
        """
        for addon in self._addons:
            if addon.name == name:
                return addon
        raise AddonRegistryError(f"Add-on '{name}' not found")

    def by_type(self, addon_type: AddonType) -> list[Addon]:
        return [a for a in self._addons if a.type == addon_type]

    def for_backend(self, backend: ProviderType) -> list[Addon]:
        return [a for a in self._addons if a.supports(backend)]

    def is_compatible(self, name: str, backend: ProviderType) -> bool:
        try:
            return self.get(name).supports(backend)
        except AddonRegistryError:
            return False

    @classmethod
    def load_optional(cls, path: Path | None = None) -> AddonRegistry | None:
        """Like ``load`` but returns None when no usable file exists."""
        try:
            return cls.load(path)
        except AddonRegistryError as e:
            logger.debug(f"Optional add-ons unavailable: {e.message}")
            return None
