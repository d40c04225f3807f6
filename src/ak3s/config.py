"""Settings loading.

Settings live in a YAML document with a top-level ``config:`` key:

    config:
      api_host: ${AK3S_API_HOST:-localhost}
      readiness:
        max_attempts: 60
        delay: 5

The file is looked up in the working directory, the system-wide path and
the user's home, in that order. ``${VAR}`` placeholders are substituted
from the environment (after loading ``.env``) before validation.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from loguru import logger
from pydantic import BaseModel, Field, ValidationError, field_validator

from ak3s.errors import ConfigurationError
from ak3s.infra.constants import DEFAULT_CONSTANTS
from ak3s.infra.retry import RetryPolicy

CONFIG_FILENAME = "ak3s.yaml"


def default_home_dir() -> Path:
    """Per-user state directory (kubeconfigs, optional config and add-ons)."""
    return Path(os.environ.get("AK3S_HOME", Path.home() / ".ak3s"))


def config_search_paths(filename: str) -> list[Path]:
    """Candidate locations of a configuration file, in lookup order."""
    return [
        Path(filename),
        Path("/etc/ak3s") / filename,
        default_home_dir() / filename,
    ]


class Ak3sSettings(BaseModel):
    """Validated settings for cluster lifecycle operations."""

    provider: str = "localdocker"
    k3s_image: str = DEFAULT_CONSTANTS.K3S_IMAGE
    home_dir: Path = Field(default_factory=default_home_dir)

    # Endpoint written into kubeconfigs and host ports of the master unit
    api_host: str = "localhost"
    api_port: int = Field(default=DEFAULT_CONSTANTS.API_CONTAINER_PORT, gt=0, lt=65536)
    http_port: int = Field(default=DEFAULT_CONSTANTS.HTTP_CONTAINER_PORT, gt=0, lt=65536)
    https_port: int = Field(default=DEFAULT_CONSTANTS.HTTPS_CONTAINER_PORT, gt=0, lt=65536)

    # Bounded waits
    readiness: RetryPolicy = Field(default_factory=RetryPolicy)
    addon_readiness: RetryPolicy = Field(default_factory=RetryPolicy)
    node_join: RetryPolicy = Field(
        default_factory=lambda: RetryPolicy(max_attempts=30, delay=5)
    )
    timeout_seconds: float | None = Field(default=None, gt=0)

    # Built-in add-ons
    calico_manifest: str | None = None
    metallb_manifest_url: str = DEFAULT_CONSTANTS.METALLB_MANIFEST_URL
    metallb_address_range: str = DEFAULT_CONSTANTS.METALLB_ADDRESS_RANGE
    ingress_manifest_url: str = DEFAULT_CONSTANTS.INGRESS_MANIFEST_URL

    system_namespaces: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CONSTANTS.SYSTEM_NAMESPACES)
    )

    @field_validator("home_dir")
    @classmethod
    def _expand_home(cls, value: Path) -> Path:
        return value.expanduser()

    @field_validator("metallb_address_range")
    @classmethod
    def _check_range(cls, value: str) -> str:
        if not re.fullmatch(r"[\d.:a-fA-F]+(-[\d.:a-fA-F]+|/\d{1,3})", value):
            raise ValueError(
                "expected 'first-last' or a CIDR, e.g. 172.18.255.200-172.18.255.250"
            )
        return value

    @property
    def clusters_dir(self) -> Path:
        return self.home_dir / "clusters"


def substitute_env_vars(text: str) -> str:
    """
    Substitute environment variable placeholders in text.

    Supports formats:
    - ${VAR_NAME} - required variable (raises error if missing)
    - ${VAR_NAME:-default} - optional with default value
    - ${VAR_NAME:?error_message} - required with custom error message
    """

    def replacer(match: re.Match[str]) -> str:
        var_expr = match.group(1)

        if ":-" in var_expr:
            var_name, default = var_expr.split(":-", 1)
            return os.getenv(var_name, default)

        if ":?" in var_expr:
            var_name, error_msg = var_expr.split(":?", 1)
            value = os.getenv(var_name)
            if value is None:
                raise ConfigurationError(
                    f"Required environment variable {var_name}: {error_msg}"
                )
            return value

        value = os.getenv(var_expr)
        if value is None:
            raise ConfigurationError(
                f"Required environment variable {var_expr} not set"
            )
        return value

    return re.sub(r"\$\{([^}]+)\}", replacer, text)


def find_config_file(explicit: Path | None = None) -> Path | None:
    """Return the settings file to load, or None if there is none."""
    if explicit is not None:
        if not explicit.exists():
            raise ConfigurationError(f"Config file not found: {explicit}")
        return explicit
    for candidate in config_search_paths(CONFIG_FILENAME):
        if candidate.is_file():
            return candidate
    return None


def load_settings(file_path: Path | None = None) -> Ak3sSettings:
    """Load settings from the first config file found, or defaults.

    Args:
        file_path: Explicit config file; skips the search list when given

    Raises:
        ConfigurationError: If the file is unreadable, malformed, or invalid
    """
    load_dotenv(Path(".env"), override=False)

    path = find_config_file(file_path)
    if path is None:
        logger.debug("No config file found, using defaults")
        return Ak3sSettings()

    logger.debug(f"Loading settings from {path}")
    try:
        content = substitute_env_vars(path.read_text())
        raw: Any = yaml.safe_load(content) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Could not read {path}", details=str(e)) from e

    if not isinstance(raw, dict) or "config" not in raw:
        section = None
    else:
        section = raw["config"] or {}
    if not isinstance(section, dict):
        raise ConfigurationError(
            f"Invalid config structure in {path}",
            details="The file must have a top-level 'config:' mapping",
        )

    try:
        return Ak3sSettings.model_validate(section)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings in {path}", details=str(e)) from e
