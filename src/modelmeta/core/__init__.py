"""Core types, configuration and errors for modelmeta."""

from .config import RegistryConfig
from .exceptions import (
    ConfigError,
    DuplicateRegistrationError,
    MaterializationError,
    MetadataNotFoundError,
    ModelMetaError,
    RegistryError,
    SchemaError,
)
from .levels import DEFAULT_PROJECTION_LEVEL, DataLevel
from .resolvers import (
    DEFAULT_OPTIONS_RESOLVER,
    OptionBag,
    OptionsBuilder,
    OptionsResolver,
    concat_resolver,
    latest_resolver,
    overwrite_resolver,
    reverse_concat_resolver,
)

__all__ = [
    "RegistryConfig",
    "ModelMetaError",
    "RegistryError",
    "DuplicateRegistrationError",
    "MetadataNotFoundError",
    "MaterializationError",
    "SchemaError",
    "ConfigError",
    "DataLevel",
    "DEFAULT_PROJECTION_LEVEL",
    "OptionBag",
    "OptionsBuilder",
    "OptionsResolver",
    "DEFAULT_OPTIONS_RESOLVER",
    "overwrite_resolver",
    "latest_resolver",
    "concat_resolver",
    "reverse_concat_resolver",
]
