"""Pytest configuration and fixtures."""

import pytest

from modelmeta import Registry, RegistryConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep MODELMETA_* variables from the outer environment out of tests."""
    for name in (
        "MODELMETA_CONFIG",
        "MODELMETA_DEFAULT_LEVEL",
        "MODELMETA_ID_FIELD",
        "MODELMETA_REGISTER_BUILTINS",
        "MODELMETA_STRICT_ENUMS",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def registry() -> Registry:
    """Provide a fresh registry with the built-in types."""
    return Registry()


@pytest.fixture
def bare_registry() -> Registry:
    """Provide a fresh registry without built-in types."""
    return Registry(RegistryConfig(register_builtins=False))
