"""Structural schema types.

A schema describes the properties of one class. Property types form a
closed tagged union; ``classify`` is the single place that decides which
variant a type is, and every consumer dispatches on the returned
``TypeKind`` instead of probing attributes.

The dictionary form (``Schema.from_dict`` / ``Schema.to_dict``) follows the
wire contract emitted by schema generators::

    {"name": "User", "props": [
        {"name": "name", "optional": True, "modifier": "PUBLIC",
         "type": {"referenceName": "Name"}},
        {"name": "tags", "optional": False, "modifier": "PUBLIC",
         "type": {"arrayElementType": "string"}},
    ]}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from ..core.exceptions import SchemaError


class Modifier(str, Enum):
    """Visibility of a schema property."""

    PUBLIC = "PUBLIC"
    PROTECTED = "PROTECTED"
    PRIVATE = "PRIVATE"


class TypeKind(Enum):
    """Variant tag of a property type."""

    UNKNOWN = "unknown"
    PRIMITIVE = "primitive"
    METHOD = "method"
    ARRAY = "array"
    REFERENCE = "reference"
    PARAMETERIZED = "parameterized"
    GENERIC = "generic"
    LITERAL = "literal"
    UNION = "union"


# Parameterized wrappers understood by the core.
REF = "Ref"
MMAP = "MMap"

# Reference names with special meaning.
ID_TYPE = "ID"
DATE_TYPE = "Date"


@dataclass(frozen=True)
class PrimitiveType:
    """A primitive such as ``string``, ``number``, ``boolean`` or ``method``."""

    name: str


@dataclass(frozen=True)
class ArrayType:
    element: "Type"


@dataclass(frozen=True)
class ReferenceType:
    """Reference to another type by its registered name."""

    name: str


@dataclass(frozen=True)
class ParameterizedType:
    """A wrapper applied to one argument, e.g. ``Ref<User>`` or ``MMap<number>``."""

    self_type: str
    argument: "Type"


@dataclass(frozen=True)
class GenericType:
    parameter_name: str
    parameter_type: "Type" = None


@dataclass(frozen=True)
class LiteralType:
    """An inline object type with its own nested properties."""

    props: tuple["Property", ...] = ()


@dataclass(frozen=True)
class UnionType:
    members: tuple["Type", ...] = ()


Type = Optional[
    Union[
        PrimitiveType,
        ArrayType,
        ReferenceType,
        ParameterizedType,
        GenericType,
        LiteralType,
        UnionType,
    ]
]

STRING = PrimitiveType("string")
NUMBER = PrimitiveType("number")
BOOLEAN = PrimitiveType("boolean")
ANY = PrimitiveType("any")
METHOD = PrimitiveType("method")


@dataclass(frozen=True)
class Property:
    """One property of a schema."""

    name: str
    type: Type = None
    optional: bool = False
    modifier: Modifier = Modifier.PUBLIC
    readonly: bool = False
    abstract: bool = False
    getter: bool = False
    setter: bool = False


@dataclass(frozen=True)
class Schema:
    """Structural schema of one class."""

    name: str
    props: tuple[Property, ...] = field(default_factory=tuple)

    def prop(self, name: str) -> Property | None:
        """Find a property by name."""
        for prop in self.props:
            if prop.name == name:
                return prop
        return None

    @property
    def prop_names(self) -> list[str]:
        return [p.name for p in self.props]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Schema":
        """Build a schema from its dictionary contract."""
        if not isinstance(data, dict) or "name" not in data:
            raise SchemaError("Schema documents must be mappings with a 'name'.")
        props = data.get("props") or []
        if not isinstance(props, list):
            raise SchemaError(f"Schema {data['name']}: 'props' must be a list.")
        return cls(name=str(data["name"]), props=tuple(parse_property(p) for p in props))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the dictionary contract."""
        return {"name": self.name, "props": [dump_property(p) for p in self.props]}


def classify(type_: Type) -> TypeKind:
    """Return the variant tag of a property type."""
    if type_ is None:
        return TypeKind.UNKNOWN
    if isinstance(type_, PrimitiveType):
        return TypeKind.METHOD if type_ == METHOD else TypeKind.PRIMITIVE
    if isinstance(type_, ArrayType):
        return TypeKind.ARRAY
    if isinstance(type_, ReferenceType):
        return TypeKind.REFERENCE
    if isinstance(type_, ParameterizedType):
        return TypeKind.PARAMETERIZED
    if isinstance(type_, GenericType):
        return TypeKind.GENERIC
    if isinstance(type_, LiteralType):
        return TypeKind.LITERAL
    if isinstance(type_, UnionType):
        return TypeKind.UNION
    raise SchemaError(f"Unsupported schema type: {type_!r}")


def type_name(type_: Type) -> str:
    """Human readable name of a type, e.g. ``Ref<User>[]``."""
    kind = classify(type_)
    if kind in (TypeKind.PRIMITIVE, TypeKind.METHOD):
        return type_.name
    if kind == TypeKind.REFERENCE:
        return type_.name
    if kind == TypeKind.ARRAY:
        return f"{type_name(type_.element)}[]"
    if kind == TypeKind.PARAMETERIZED:
        return f"{type_.self_type}<{type_name(type_.argument)}>"
    if kind == TypeKind.GENERIC:
        return type_.parameter_name
    if kind == TypeKind.LITERAL:
        inner = "; ".join(f"{p.name}: {type_name(p.type)}" for p in type_.props)
        return "{" + inner + "}"
    if kind == TypeKind.UNION:
        return " | ".join(type_name(m) for m in type_.members)
    return "unknown"


# =============================================================================
# Dictionary contract
# =============================================================================


def parse_type(raw: Any) -> Type:
    """Parse a type from its dictionary contract."""
    if raw is None:
        return None
    if isinstance(raw, str):
        return PrimitiveType(raw)
    if not isinstance(raw, dict):
        raise SchemaError(f"Unsupported type segment: {raw!r}")
    if "arrayElementType" in raw:
        return ArrayType(parse_type(raw["arrayElementType"]))
    if "referenceName" in raw:
        return ReferenceType(str(raw["referenceName"]))
    if "selfType" in raw:
        return ParameterizedType(str(raw["selfType"]), parse_type(raw.get("typeArgumentType")))
    if "genericParameterName" in raw:
        return GenericType(
            str(raw["genericParameterName"]),
            parse_type(raw.get("genericParameterType")),
        )
    if "union" in raw:
        return UnionType(tuple(parse_type(m) for m in raw["union"]))
    if "props" in raw:
        return LiteralType(tuple(parse_property(p) for p in raw["props"]))
    raise SchemaError(f"Unsupported type segment: {raw!r}")


def dump_type(type_: Type) -> Any:
    """Serialize a type to its dictionary contract."""
    kind = classify(type_)
    if kind == TypeKind.UNKNOWN:
        return None
    if kind in (TypeKind.PRIMITIVE, TypeKind.METHOD):
        return type_.name
    if kind == TypeKind.ARRAY:
        return {"arrayElementType": dump_type(type_.element)}
    if kind == TypeKind.REFERENCE:
        return {"referenceName": type_.name}
    if kind == TypeKind.PARAMETERIZED:
        return {"selfType": type_.self_type, "typeArgumentType": dump_type(type_.argument)}
    if kind == TypeKind.GENERIC:
        return {
            "genericParameterName": type_.parameter_name,
            "genericParameterType": dump_type(type_.parameter_type),
        }
    if kind == TypeKind.LITERAL:
        return {"props": [dump_property(p) for p in type_.props]}
    return {"union": [dump_type(m) for m in type_.members]}


def parse_property(raw: Any) -> Property:
    if not isinstance(raw, dict) or "name" not in raw:
        raise SchemaError(f"Schema properties must be mappings with a 'name': {raw!r}")
    try:
        modifier = Modifier(str(raw.get("modifier", Modifier.PUBLIC.value)).upper())
    except ValueError as e:
        raise SchemaError(f"Unknown modifier for property {raw['name']}: {raw.get('modifier')!r}") from e
    return Property(
        name=str(raw["name"]),
        type=parse_type(raw.get("type")),
        optional=bool(raw.get("optional", False)),
        modifier=modifier,
        readonly=bool(raw.get("readonly", False)),
        abstract=bool(raw.get("abstract", False)),
        getter=bool(raw.get("getter", False)),
        setter=bool(raw.get("setter", False)),
    )


def dump_property(prop: Property) -> dict[str, Any]:
    data: dict[str, Any] = {
        "name": prop.name,
        "optional": prop.optional,
        "modifier": prop.modifier.value,
        "type": dump_type(prop.type),
    }
    for flag in ("readonly", "abstract", "getter", "setter"):
        if getattr(prop, flag):
            data[flag] = True
    return data
