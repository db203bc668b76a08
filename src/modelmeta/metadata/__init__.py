"""Model registry, descriptors and annotation helpers."""

from .annotations import (
    annotate,
    autogen,
    basic,
    coerce,
    confidential,
    config,
    default,
    detail,
    detail_to_basic,
    detail_to_short,
    field_options,
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
    short_to_basic,
    tag,
    virtual,
)
from .behaviors import RESERVED_NAMES, compose_behaviors
from .descriptor import ModelConfig, ModelDescriptor, ModelKind
from .fields import FieldDescriptor
from .registry import Registry

__all__ = [
    "Registry",
    "ModelDescriptor",
    "ModelConfig",
    "ModelKind",
    "FieldDescriptor",
    "RESERVED_NAMES",
    "compose_behaviors",
    "annotate",
    "autogen",
    "basic",
    "coerce",
    "confidential",
    "config",
    "default",
    "detail",
    "detail_to_basic",
    "detail_to_short",
    "field_options",
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
    "short_to_basic",
    "tag",
    "virtual",
]
