"""Behavior composition for mixins.

A model class inherits behaviors from its Python bases through the MRO.
Methods and properties of mixin classes that are not bases are collected
here into an immutable table the instance delegates attribute lookups to.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Iterable, Mapping

from ..schema.provider import is_behavior, is_dunder

# Names owned by the model runtime that mixins may not override.
RESERVED_NAMES = frozenset(
    {
        "modelize",
        "to_object",
        "to_json",
        "attach",
        "attachment",
        "get_metadata",
    }
)


def compose_behaviors(leaf: type, lineage: Iterable[type]) -> Mapping[str, Any]:
    """Collect behaviors of ``lineage`` that ``leaf`` does not inherit itself.

    ``lineage`` is ordered nearest first; on a name clash the nearest class
    wins. Classes already on ``leaf``'s MRO, and ``object``, contribute
    nothing because normal attribute lookup finds their members.
    """
    inherited = set(leaf.__mro__)
    table: dict[str, Any] = {}

    for cls in lineage:
        for klass in cls.__mro__:
            if klass is object or klass in inherited:
                continue
            for name, value in vars(klass).items():
                if name in table or is_dunder(name) or name in RESERVED_NAMES:
                    continue
                if is_behavior(value):
                    table[name] = value

    return MappingProxyType(table)
