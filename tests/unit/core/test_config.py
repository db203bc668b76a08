"""Tests for RegistryConfig loading and env overrides."""

from pathlib import Path

import pytest

from modelmeta.core.config import RegistryConfig
from modelmeta.core.exceptions import ConfigError
from modelmeta.core.levels import DEFAULT_PROJECTION_LEVEL


def test_defaults():
    """Defaults project everything below NEVER and register built-ins."""
    config = RegistryConfig()

    assert config.default_level == DEFAULT_PROJECTION_LEVEL == 999
    assert config.id_field == "id"
    assert config.register_builtins is True
    assert config.strict_enums is True


def test_from_env(monkeypatch):
    """Environment variables override defaults."""
    monkeypatch.setenv("MODELMETA_DEFAULT_LEVEL", "20")
    monkeypatch.setenv("MODELMETA_ID_FIELD", "_id")
    monkeypatch.setenv("MODELMETA_REGISTER_BUILTINS", "false")
    monkeypatch.setenv("MODELMETA_STRICT_ENUMS", "0")

    config = RegistryConfig.from_env()

    assert config.default_level == 20
    assert config.id_field == "_id"
    assert config.register_builtins is False
    assert config.strict_enums is False


def test_from_env_rejects_non_integer_level(monkeypatch):
    """A non-numeric level is a configuration error."""
    monkeypatch.setenv("MODELMETA_DEFAULT_LEVEL", "detail")

    with pytest.raises(ConfigError):
        RegistryConfig.from_env()


def test_from_file_applies_toml_then_env(tmp_path: Path, monkeypatch):
    """Environment variables should override TOML values."""
    toml_path = tmp_path / "modelmeta.toml"
    toml_path.write_text(
        "\n".join(
            [
                "[modelmeta]",
                "default_level = 30",
                'id_field = "uid"',
                "strict_enums = false",
            ]
        ),
        encoding="utf-8",
    )

    monkeypatch.setenv("MODELMETA_DEFAULT_LEVEL", "40")

    config = RegistryConfig.from_file(toml_path)

    assert config.default_level == 40
    assert config.id_field == "uid"
    assert config.strict_enums is False


def test_from_file_accepts_top_level_keys(tmp_path: Path):
    """Keys may live at the top level of the document."""
    toml_path = tmp_path / "modelmeta.toml"
    toml_path.write_text("default_level = 10\n", encoding="utf-8")

    assert RegistryConfig.from_file(toml_path).default_level == 10


def test_from_file_missing(tmp_path: Path):
    """A missing file is a configuration error."""
    with pytest.raises(ConfigError, match="not found"):
        RegistryConfig.from_file(tmp_path / "nope.toml")


def test_from_file_invalid_toml(tmp_path: Path):
    """Malformed TOML is a configuration error."""
    toml_path = tmp_path / "bad.toml"
    toml_path.write_text("default_level = = 3", encoding="utf-8")

    with pytest.raises(ConfigError, match="Invalid TOML"):
        RegistryConfig.from_file(toml_path)


def test_from_env_or_file_uses_modelmeta_config(tmp_path: Path, monkeypatch):
    """MODELMETA_CONFIG should be used when no explicit path is provided."""
    toml_path = tmp_path / "modelmeta.toml"
    toml_path.write_text('id_field = "key"', encoding="utf-8")

    monkeypatch.setenv("MODELMETA_CONFIG", str(toml_path))

    config = RegistryConfig.from_env_or_file()

    assert config.id_field == "key"


def test_from_env_or_file_without_file():
    """Without a file, configuration comes from the environment."""
    assert RegistryConfig.from_env_or_file() == RegistryConfig()
