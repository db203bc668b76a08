"""Schema providers.

A schema provider supplies the structural schema of a class at
registration time, plus the per-field option bags declared next to it.

- ``AnnotationSchemaProvider`` derives both from the class's own type hints,
  properties and methods.
- ``DocumentSchemaProvider`` serves schemas loaded from JSON or YAML
  documents written in the dictionary contract, falling back to another
  provider for classes it does not know.
"""

from __future__ import annotations

import builtins
import collections.abc
import datetime
import decimal
import inspect
import sys
import types
import uuid
from pathlib import Path
from typing import (
    Annotated,
    Any,
    ClassVar,
    ForwardRef,
    Iterable,
    Literal,
    Protocol,
    TypeVar,
    Union,
    get_args,
    get_origin,
    get_type_hints,
    is_typeddict,
    runtime_checkable,
)

import yaml
from loguru import logger

from ..core.exceptions import SchemaError
from ..core.resolvers import OptionBag
from .markers import MMap, Ref
from .types import (
    ANY,
    BOOLEAN,
    DATE_TYPE,
    METHOD,
    MMAP,
    NUMBER,
    REF,
    STRING,
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
    UnionType,
)

FieldOptionMap = dict[str, tuple[OptionBag, ...]]

# Class attribute holding option bags declared with ``annotate``.
FIELD_OPTIONS_ATTR = "__model_field_options__"

_PRIMITIVES: dict[Any, PrimitiveType] = {
    str: STRING,
    int: NUMBER,
    float: NUMBER,
    complex: NUMBER,
    decimal.Decimal: NUMBER,
    bool: BOOLEAN,
    bytes: PrimitiveType("bytes"),
}

_REFERENCES: dict[Any, str] = {
    datetime.datetime: DATE_TYPE,
    datetime.date: DATE_TYPE,
    uuid.UUID: "UUID",
}

_ARRAY_ORIGINS = {
    list,
    tuple,
    set,
    frozenset,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Set,
    collections.abc.Iterable,
    collections.abc.Collection,
}

_MAP_ORIGINS = {dict, MMap, collections.abc.Mapping, collections.abc.MutableMapping}

# On Python 3.14+ annotations are evaluated lazily; ask for forward
# references there instead of a NameError.
if sys.version_info >= (3, 14):
    import annotationlib

    _HINT_FORMAT: dict[str, Any] = {"format": annotationlib.Format.FORWARDREF}
else:
    _HINT_FORMAT = {}


@runtime_checkable
class SchemaProvider(Protocol):
    """Supplies schema information for a class being registered."""

    def schema_for(self, cls: type, name: str) -> Schema:
        """Return the structural schema of ``cls`` registered as ``name``."""
        ...

    def field_options_for(self, cls: type) -> FieldOptionMap:
        """Return the option bags declared on ``cls``'s own fields."""
        ...


def model_name(cls: Any) -> str:
    """Registered name of a class, falling back to its ``__name__``."""
    return vars(cls).get("__model_name__") or cls.__name__


def modifier_for(name: str) -> Modifier:
    if name.startswith("__"):
        return Modifier.PRIVATE
    if name.startswith("_"):
        return Modifier.PROTECTED
    return Modifier.PUBLIC


def is_dunder(name: str) -> bool:
    return name.startswith("__") and name.endswith("__")


def is_behavior(value: Any) -> bool:
    """Whether a class attribute is a method or property rather than data."""
    return isinstance(value, (property, staticmethod, classmethod)) or inspect.isfunction(value)


class _ForwardName:
    """Placeholder for a name that cannot be resolved while reading hints."""

    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name = name

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        raise TypeError(f"Unresolved forward name {self.name!r} is not callable")

    def __or__(self, other: Any) -> Any:
        return Union[self, other]

    def __ror__(self, other: Any) -> Any:
        return Union[other, self]

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _ForwardName) and other.name == self.name

    def __hash__(self) -> int:
        return hash(("_ForwardName", self.name))

    def __repr__(self) -> str:
        return f"_ForwardName({self.name!r})"


def resolve_type_hints(obj: Any, localns: dict[str, Any] | None = None) -> dict[str, Any]:
    """``typing.get_type_hints`` that keeps names it cannot resolve.

    An undefined name is bound to a ``_ForwardName`` and the lookup is
    retried, so ``list["Later"]`` resolves to a list of the forward name
    ``Later`` instead of failing. ``Annotated`` metadata is kept.

    Raises:
        SchemaError: If a hint keeps failing on the same name.
    """
    namespace = dict(localns or {})
    while True:
        try:
            return get_type_hints(obj, localns=namespace, include_extras=True, **_HINT_FORMAT)
        except NameError as e:
            if e.name is None or e.name in namespace:
                raise SchemaError(f"Cannot resolve type hints of {obj!r}: {e}") from e
            namespace[e.name] = _ForwardName(e.name)
        except SyntaxError as e:
            raise SchemaError(f"Cannot parse type hints of {obj!r}: {e}") from e


def _class_namespace(cls: type) -> dict[str, Any]:
    # Nested classes and the class itself, as the class body would see them.
    namespace = {k: v for k, v in vars(cls).items() if isinstance(v, type)}
    namespace[cls.__name__] = cls
    return namespace


def _raw_annotations(cls: type) -> dict[str, Any]:
    try:
        return dict(inspect.get_annotations(cls))
    except NameError:
        # Python 3.14+ evaluates annotations lazily; keep unresolved names.
        import annotationlib

        return dict(annotationlib.get_annotations(cls, format=annotationlib.Format.FORWARDREF))


class AnnotationSchemaProvider:
    """Derives schemas from type hints, properties and methods.

    Only the class's own declarations are read; inherited fields come from
    the ancestors' descriptors when fields are merged.

    Example:
        class User(StrictModel):
            name: Optional[Name]
            gender: Annotated[Gender, level(DataLevel.BASIC)]

            @property
            def display(self) -> str: ...

        provider.schema_for(User, "User").prop("name").optional  # True
    """

    def schema_for(self, cls: type, name: str) -> Schema:
        props: list[Property] = []
        hints = self._own_hints(cls)

        for attr, hint in hints.items():
            if is_dunder(attr) or self._is_classvar(hint):
                continue
            type_, optional, _bags = self.convert(hint, cls)
            props.append(
                Property(
                    name=attr,
                    type=type_,
                    optional=optional,
                    modifier=modifier_for(attr),
                )
            )

        for attr, value in vars(cls).items():
            if attr in hints or is_dunder(attr):
                continue
            if isinstance(value, property):
                returns = self._return_hint(value.fget, cls)
                type_, optional, _bags = (
                    self.convert(returns, cls) if returns is not None else (ANY, False, [])
                )
                props.append(
                    Property(
                        name=attr,
                        type=type_,
                        optional=optional,
                        modifier=modifier_for(attr),
                        readonly=value.fset is None,
                        getter=value.fget is not None,
                        setter=value.fset is not None,
                    )
                )
            elif inspect.isfunction(value):
                props.append(Property(name=attr, type=METHOD, modifier=modifier_for(attr)))

        return Schema(name=name, props=tuple(props))

    def field_options_for(self, cls: type) -> FieldOptionMap:
        collected: dict[str, list[OptionBag]] = {}
        hints = self._own_hints(cls)
        namespace = vars(cls)

        for attr, hint in hints.items():
            if is_dunder(attr) or self._is_classvar(hint):
                continue
            _type, _optional, bags = self.convert(hint, cls)
            if attr in namespace and not is_behavior(namespace[attr]):
                bags = [OptionBag({"default": namespace[attr]}), *bags]
            if bags:
                collected.setdefault(attr, []).extend(bags)

        for attr, value in namespace.items():
            if is_dunder(attr):
                continue
            fn = value.fget if isinstance(value, property) else value
            bags = getattr(fn, "__field_options__", None)
            if bags and inspect.isfunction(fn):
                collected.setdefault(attr, []).extend(bags)

        for attr, bags in (namespace.get(FIELD_OPTIONS_ATTR) or {}).items():
            collected.setdefault(attr, []).extend(bags)

        return {attr: tuple(bags) for attr, bags in collected.items()}

    # -------------------------------------------------------------------------
    # Hint conversion
    # -------------------------------------------------------------------------

    def convert(self, hint: Any, owner: type | None = None) -> tuple[Type, bool, list[OptionBag]]:
        """Convert a type hint into ``(type, optional, option_bags)``."""
        if isinstance(hint, ForwardRef):
            hint = hint.__forward_arg__
        if isinstance(hint, str):
            return self.convert(self._lookup(hint, owner), owner)
        if isinstance(hint, _ForwardName):
            return ReferenceType(hint.name), False, []
        if hint is None or hint is type(None):
            return PrimitiveType("null"), True, []
        if hint is Any or hint is object:
            return ANY, False, []

        origin = get_origin(hint)
        args = get_args(hint)

        if origin is Annotated:
            type_, optional, bags = self.convert(args[0], owner)
            extra = [m for m in hint.__metadata__ if isinstance(m, OptionBag)]
            return type_, optional, [*bags, *extra]

        if origin is Union or origin is types.UnionType:
            members = [a for a in args if a is not None and a is not type(None)]
            optional = len(members) < len(args)
            if len(members) == 1:
                type_, inner_optional, bags = self.convert(members[0], owner)
                return type_, optional or inner_optional, bags
            return UnionType(tuple(self.convert(m, owner)[0] for m in members)), optional, []

        if origin is Literal:
            kinds = {_PRIMITIVES.get(type(v), ANY) for v in args}
            return (kinds.pop() if len(kinds) == 1 else ANY), False, []

        if origin is Ref:
            return ParameterizedType(REF, self._argument(args, 0, owner)), False, []

        if origin in _MAP_ORIGINS:
            return ParameterizedType(MMAP, self._argument(args, -1, owner)), False, []

        if origin in _ARRAY_ORIGINS:
            return ArrayType(self._argument(args, 0, owner)), False, []

        if isinstance(hint, TypeVar):
            bound = self.convert(hint.__bound__, owner)[0] if hint.__bound__ is not None else None
            return GenericType(hint.__name__, bound), False, []

        if hasattr(hint, "__supertype__"):
            # typing.NewType, e.g. ID / Email
            return ReferenceType(hint.__name__), False, []

        if hint in _PRIMITIVES:
            return _PRIMITIVES[hint], False, []

        if hint in _REFERENCES:
            return ReferenceType(_REFERENCES[hint]), False, []

        if isinstance(hint, type) and is_typeddict(hint):
            return LiteralType(self.schema_for(hint, hint.__name__).props), False, []

        if hint in (list, tuple, set, frozenset):
            return ArrayType(ANY), False, []

        if hint is dict or hint is MMap:
            return ParameterizedType(MMAP, ANY), False, []

        if isinstance(hint, type):
            return ReferenceType(model_name(hint)), False, []

        raise SchemaError(f"Unsupported type hint: {hint!r}")

    def _argument(self, args: tuple[Any, ...], index: int, owner: type | None) -> Type:
        if not args or args[index] is Ellipsis:
            return ANY
        return self.convert(args[index], owner)[0]

    def _lookup(self, name: str, owner: type | None) -> Any:
        # Bare names only; anything else reaches here through get_type_hints.
        if not name.isidentifier():
            raise SchemaError(f"Cannot resolve type hint {name!r}")
        if owner is not None:
            if name == owner.__name__:
                return owner
            module = sys.modules.get(owner.__module__)
            if module is not None and name in vars(module):
                return vars(module)[name]
        if hasattr(builtins, name):
            return getattr(builtins, name)
        return _ForwardName(name)

    def _own_hints(self, cls: type) -> dict[str, Any]:
        own = _raw_annotations(cls)
        if not own:
            return {}
        resolved = resolve_type_hints(cls, _class_namespace(cls))
        return {attr: resolved.get(attr, hint) for attr, hint in own.items()}

    def _return_hint(self, fn: Any, owner: type) -> Any:
        if fn is None:
            return None
        return resolve_type_hints(fn, _class_namespace(owner)).get("return")

    def _is_classvar(self, hint: Any) -> bool:
        if isinstance(hint, str):
            return hint.startswith(("ClassVar", "typing.ClassVar"))
        return hint is ClassVar or get_origin(hint) is ClassVar


class DocumentSchemaProvider:
    """Serves schemas read from JSON or YAML documents.

    A document holds a single schema mapping, a list of them, or a mapping
    with a ``schemas`` list. Lookups are case-insensitive. Classes without a
    document are delegated to ``fallback`` when one is given.
    """

    def __init__(
        self,
        schemas: Iterable[Schema] = (),
        *,
        fallback: SchemaProvider | None = None,
    ) -> None:
        self._schemas: dict[str, Schema] = {}
        self._fallback = fallback
        for schema in schemas:
            self.add(schema)

    @classmethod
    def from_paths(
        cls,
        *paths: str | Path,
        fallback: SchemaProvider | None = None,
    ) -> "DocumentSchemaProvider":
        provider = cls(fallback=fallback)
        for path in paths:
            provider.load(path)
        return provider

    def add(self, schema: Schema) -> None:
        self._schemas[schema.name.lower()] = schema

    def load(self, path: str | Path) -> list[Schema]:
        """Load every schema in a document and return them."""
        path = Path(path)
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise SchemaError(f"Cannot read schema document {path}: {e}") from e
        except yaml.YAMLError as e:
            raise SchemaError(f"Invalid schema document {path}: {e}") from e

        if isinstance(data, dict) and "schemas" in data:
            data = data["schemas"]
        entries = data if isinstance(data, list) else [data]

        loaded = [Schema.from_dict(entry) for entry in entries]
        for schema in loaded:
            self.add(schema)
        logger.debug(f"Loaded {len(loaded)} schemas from {path}")
        return loaded

    def has_schema(self, name: str) -> bool:
        return name.lower() in self._schemas

    def schema_for(self, cls: type, name: str) -> Schema:
        schema = self._schemas.get(name.lower())
        if schema is not None:
            return schema
        if self._fallback is not None:
            return self._fallback.schema_for(cls, name)
        raise SchemaError(f"No schema document for {name}")

    def field_options_for(self, cls: type) -> FieldOptionMap:
        if self._fallback is not None:
            return self._fallback.field_options_for(cls)
        return {
            attr: tuple(bags) for attr, bags in (vars(cls).get(FIELD_OPTIONS_ATTR) or {}).items()
        }
