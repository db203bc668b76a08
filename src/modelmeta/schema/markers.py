"""Type-hint markers understood by the annotation schema provider."""

from __future__ import annotations

from typing import Dict, Generic, NewType, TypeVar

M = TypeVar("M")
V = TypeVar("V")

# Identifier values pass through materialization unchanged.
ID = NewType("ID", str)

Email = NewType("Email", str)

UUID = NewType("UUID", str)


class Ref(Generic[M]):
    """A field holding either a bare identifier or an embedded instance of ``M``.

    Only meaningful as a type hint: ``owner: Ref[User]``.
    """

    __slots__ = ()


class MMap(Dict[str, V]):
    """A string-keyed map whose values are materialized as ``V``."""

    pass
