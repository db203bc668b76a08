"""Materialization, projection and the model base class."""

from .builtin_types import BUILTIN_TYPES, DATE, EMAIL, UUID, CustomType, register_builtin_types
from .model import StrictModel
from .options import MISSING, ModelizeMeta, ModelizeOptions, ToObjectOptions, is_identifier

__all__ = [
    "StrictModel",
    "CustomType",
    "BUILTIN_TYPES",
    "DATE",
    "EMAIL",
    "UUID",
    "register_builtin_types",
    "MISSING",
    "ModelizeMeta",
    "ModelizeOptions",
    "ToObjectOptions",
    "is_identifier",
]
