"""Structural schemas and the providers that produce them."""

from .markers import ID, MMap, Email, Ref, UUID
from .provider import (
    AnnotationSchemaProvider,
    DocumentSchemaProvider,
    FieldOptionMap,
    SchemaProvider,
    model_name,
)
from .types import (
    ArrayType,
    GenericType,
    LiteralType,
    Modifier,
    ParameterizedType,
    PrimitiveType,
    Property,
    ReferenceType,
    Schema,
    Type,
    TypeKind,
    UnionType,
    classify,
    dump_type,
    parse_type,
    type_name,
)

__all__ = [
    "ID",
    "Email",
    "UUID",
    "Ref",
    "MMap",
    "SchemaProvider",
    "AnnotationSchemaProvider",
    "DocumentSchemaProvider",
    "FieldOptionMap",
    "model_name",
    "Schema",
    "Property",
    "Modifier",
    "Type",
    "TypeKind",
    "PrimitiveType",
    "ArrayType",
    "ReferenceType",
    "ParameterizedType",
    "GenericType",
    "LiteralType",
    "UnionType",
    "classify",
    "type_name",
    "parse_type",
    "dump_type",
]
