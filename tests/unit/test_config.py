"""Tests for settings loading."""

from pathlib import Path

import pytest

from ak3s.config import (
    Ak3sSettings,
    config_search_paths,
    find_config_file,
    load_settings,
    substitute_env_vars,
)
from ak3s.errors import ConfigurationError


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "ak3s.yaml"
    path.write_text(content)
    return path


class TestSubstituteEnvVars:
    def test_plain_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AK3S_TEST_HOST", "k3s.local")

        assert substitute_env_vars("host: ${AK3S_TEST_HOST}") == "host: k3s.local"

    def test_default_used_when_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("AK3S_TEST_HOST", raising=False)

        assert substitute_env_vars("${AK3S_TEST_HOST:-localhost}") == "localhost"

    def test_required_variable_message(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("AK3S_TEST_TOKEN", raising=False)

        with pytest.raises(ConfigurationError) as excinfo:
            substitute_env_vars("${AK3S_TEST_TOKEN:?set a token}")

        assert "set a token" in excinfo.value.message

    def test_missing_plain_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("AK3S_TEST_TOKEN", raising=False)

        with pytest.raises(ConfigurationError):
            substitute_env_vars("${AK3S_TEST_TOKEN}")


class TestLoadSettings:
    def test_defaults_without_file(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("AK3S_HOME", str(tmp_path / "home"))
        monkeypatch.setattr(
            "ak3s.config.config_search_paths",
            lambda filename: [tmp_path / filename],
        )

        settings = load_settings()

        assert settings.provider == "localdocker"
        assert settings.api_port == 6443
        assert settings.home_dir == tmp_path / "home"

    def test_loads_explicit_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AK3S_TEST_HOST", "10.0.0.7")
        path = _write(
            tmp_path,
            "config:\n"
            "  api_host: ${AK3S_TEST_HOST}\n"
            "  api_port: 16443\n"
            "  readiness:\n"
            "    max_attempts: 3\n"
            "    delay: 1\n",
        )

        settings = load_settings(path)

        assert settings.api_host == "10.0.0.7"
        assert settings.api_port == 16443
        assert settings.readiness.max_attempts == 3
        assert settings.addon_readiness.max_attempts == 30

    def test_requires_config_key(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "api_port: 16443\n")

        with pytest.raises(ConfigurationError) as excinfo:
            load_settings(path)

        assert "config" in excinfo.value.details

    def test_invalid_values_carry_details(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "config:\n  api_port: 70000\n")

        with pytest.raises(ConfigurationError) as excinfo:
            load_settings(path)

        assert "api_port" in excinfo.value.details

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "config: [unclosed\n")

        with pytest.raises(ConfigurationError):
            load_settings(path)

    def test_empty_config_section_uses_defaults(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "config:\n")

        assert load_settings(path).https_port == 443

    def test_missing_explicit_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError):
            find_config_file(tmp_path / "nope.yaml")


class TestSettingsModel:
    def test_metallb_range_accepts_range_and_cidr(self) -> None:
        Ak3sSettings(metallb_address_range="172.18.255.200-172.18.255.250")
        Ak3sSettings(metallb_address_range="172.18.255.0/28")

    def test_metallb_range_rejects_garbage(self) -> None:
        with pytest.raises(ValueError):
            Ak3sSettings(metallb_address_range="lots of addresses")

    def test_home_dir_expanded(self) -> None:
        settings = Ak3sSettings(home_dir=Path("~/somewhere"))

        assert "~" not in str(settings.home_dir)
        assert settings.clusters_dir == settings.home_dir / "clusters"


def test_search_paths_order(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AK3S_HOME", "/opt/ak3s")

    assert config_search_paths("plugins.yaml") == [
        Path("plugins.yaml"),
        Path("/etc/ak3s/plugins.yaml"),
        Path("/opt/ak3s/plugins.yaml"),
    ]
