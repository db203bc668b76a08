"""Configuration management for modelmeta."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .exceptions import ConfigError
from .levels import DEFAULT_PROJECTION_LEVEL

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


@dataclass
class RegistryConfig:
    """Registry configuration.

    Attributes:
        default_level: Projection level used when a caller does not ask for one.
        id_field: Field that receives a bare identifier when a reference is
            coerced into a stub record.
        register_builtins: Register the built-in customized types (Date,
            Email, UUID) on construction and after every reset.
        strict_enums: Reject values that are not members of a registered enum.
            When disabled, unknown values pass through unchanged.
    """

    default_level: int = int(DEFAULT_PROJECTION_LEVEL)
    id_field: str = "id"
    register_builtins: bool = True
    strict_enums: bool = True

    @classmethod
    def from_env(cls) -> "RegistryConfig":
        """Load configuration from environment variables."""
        config = cls()
        config._apply_env()
        return config

    @classmethod
    def from_file(cls, path: str | Path) -> "RegistryConfig":
        """Load configuration from a TOML file, then apply env overrides.

        Keys may live at the top level or under a ``[modelmeta]`` table.
        """
        path = Path(path)
        try:
            with path.open("rb") as fh:
                data = tomllib.load(fh)
        except FileNotFoundError as e:
            raise ConfigError(f"Config file not found: {path}") from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {path}: {e}") from e

        config = cls()
        config._apply_mapping(data.get("modelmeta", data))
        config._apply_env()
        return config

    @classmethod
    def from_env_or_file(cls, path: str | Path | None = None) -> "RegistryConfig":
        """Load from ``path`` or ``MODELMETA_CONFIG`` when set, else from env."""
        candidate = path or os.environ.get("MODELMETA_CONFIG")
        if candidate:
            return cls.from_file(candidate)
        return cls.from_env()

    def _apply_mapping(self, data: dict[str, Any]) -> None:
        if "default_level" in data:
            self.default_level = int(data["default_level"])
        if "id_field" in data:
            self.id_field = str(data["id_field"])
        if "register_builtins" in data:
            self.register_builtins = bool(data["register_builtins"])
        if "strict_enums" in data:
            self.strict_enums = bool(data["strict_enums"])

    def _apply_env(self) -> None:
        if level := os.environ.get("MODELMETA_DEFAULT_LEVEL"):
            try:
                self.default_level = int(level)
            except ValueError as e:
                raise ConfigError(f"MODELMETA_DEFAULT_LEVEL must be an integer: {level!r}") from e

        if id_field := os.environ.get("MODELMETA_ID_FIELD"):
            self.id_field = id_field

        if (flag := os.environ.get("MODELMETA_REGISTER_BUILTINS")) is not None:
            self.register_builtins = _env_flag(flag)

        if (flag := os.environ.get("MODELMETA_STRICT_ENUMS")) is not None:
            self.strict_enums = _env_flag(flag)
