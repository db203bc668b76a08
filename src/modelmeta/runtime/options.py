"""Options passed through materialization and projection calls."""

from __future__ import annotations

import dataclasses
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..metadata.fields import FieldDescriptor
    from ..metadata.registry import Registry


class _Missing:
    """Marker for a value that is absent, as opposed to ``None``."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


def is_identifier(value: Any) -> bool:
    """True for values that can stand in for a referenced record."""
    return isinstance(value, (str, int, uuid.UUID)) and not isinstance(value, bool)


@dataclass(frozen=True)
class ModelizeMeta:
    """Where a value sits in the instance graph being materialized.

    Attributes:
        parent: Instance that will own the value.
        path: Dotted path of the value from the root instance.
        is_array: Whether the value is an element of an array field.
        index: Element index when ``is_array`` is set.
    """

    parent: Any = None
    path: str | None = None
    is_array: bool = False
    index: int | None = None


@dataclass(frozen=True)
class ModelizeOptions:
    """Options for a materialization call.

    Attributes:
        registry: Registry resolving referenced types.
        attach_field_metadata: Attach parent/path context to nested instances.
        allow_reference: Coerce bare identifiers found where a record is
            expected into stub records holding only the identifier.
        meta: Position of the current value in the instance graph.
        field: Field currently being materialized.
    """

    registry: "Registry | None" = None
    attach_field_metadata: bool = False
    allow_reference: bool = False
    meta: ModelizeMeta | None = None
    field: "FieldDescriptor | None" = None

    def derive(self, **changes: Any) -> "ModelizeOptions":
        return dataclasses.replace(self, **changes)


@dataclass(frozen=True)
class ToObjectOptions:
    """Options for a projection call.

    Attributes:
        level: Data level of the projection; fields above it are dropped.
        registry: Registry resolving referenced types.
        field: Field currently being projected.
    """

    level: int | None = None
    registry: "Registry | None" = None
    field: "FieldDescriptor | None" = None

    def derive(self, **changes: Any) -> "ToObjectOptions":
        return dataclasses.replace(self, **changes)
