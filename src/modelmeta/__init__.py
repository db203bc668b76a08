"""Model metadata registry with materialization and level-based projection."""

from .core import (
    DEFAULT_PROJECTION_LEVEL,
    ConfigError,
    DataLevel,
    DuplicateRegistrationError,
    MaterializationError,
    MetadataNotFoundError,
    ModelMetaError,
    RegistryConfig,
    RegistryError,
    SchemaError,
)
from .core.resolvers import (
    OptionBag,
    OptionsBuilder,
    concat_resolver,
    latest_resolver,
    overwrite_resolver,
    reverse_concat_resolver,
)
from .metadata import (
    FieldDescriptor,
    ModelConfig,
    ModelDescriptor,
    ModelKind,
    Registry,
    annotate,
    autogen,
    basic,
    coerce,
    confidential,
    config,
    default,
    detail,
    important,
    index,
    level,
    mixin,
    never,
    no_persist,
    optional,
    present,
    readonly,
    reference,
    required,
    short,
    tag,
    virtual,
)
from .runtime import CustomType, StrictModel
from .schema import (
    ID,
    UUID,
    AnnotationSchemaProvider,
    DocumentSchemaProvider,
    Email,
    MMap,
    Ref,
    Schema,
)

__version__ = "0.1.0"

__all__ = [
    "Registry",
    "RegistryConfig",
    "StrictModel",
    "CustomType",
    "ModelDescriptor",
    "ModelConfig",
    "ModelKind",
    "FieldDescriptor",
    "Schema",
    "AnnotationSchemaProvider",
    "DocumentSchemaProvider",
    "ID",
    "UUID",
    "Email",
    "Ref",
    "MMap",
    "DataLevel",
    "DEFAULT_PROJECTION_LEVEL",
    "OptionBag",
    "OptionsBuilder",
    "overwrite_resolver",
    "latest_resolver",
    "concat_resolver",
    "reverse_concat_resolver",
    "annotate",
    "autogen",
    "basic",
    "coerce",
    "confidential",
    "config",
    "default",
    "detail",
    "important",
    "index",
    "level",
    "mixin",
    "never",
    "no_persist",
    "optional",
    "present",
    "readonly",
    "reference",
    "required",
    "short",
    "tag",
    "virtual",
    "ModelMetaError",
    "RegistryError",
    "DuplicateRegistrationError",
    "MetadataNotFoundError",
    "MaterializationError",
    "SchemaError",
    "ConfigError",
]
