"""Field and class annotation helpers.

Field helpers return an ``OptionBag``. A bag can be placed in
``Annotated`` metadata, used as a decorator on a property or method, or
attached by name with ``annotate``::

    class User(StrictModel):
        email: Annotated[Email, level(DataLevel.SHORT), required()]
        password: Annotated[str, never()]

        @property
        @confidential()
        def phone(self) -> str: ...

Class helpers (``config``, ``mixin``, ``index``) add a bag to the class's
own config and return the class unchanged.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping

from ..core.exceptions import RegistryError
from ..core.levels import DataLevel
from ..core.resolvers import (
    DEFAULT_OPTIONS_RESOLVER,
    OptionBag,
    OptionsResolver,
    concat_resolver,
    reverse_concat_resolver,
)
from ..schema.provider import FIELD_OPTIONS_ATTR
from .descriptor import class_options

PassLevelMap = Mapping[int, int]


def field_options(
    options: Mapping[str, Any] | None = None,
    resolver: OptionsResolver | None = None,
    **kwargs: Any,
) -> OptionBag:
    """A bag of arbitrary field options."""
    return OptionBag({**(options or {}), **kwargs}, resolver or DEFAULT_OPTIONS_RESOLVER)


# =============================================================================
# Data levels
# =============================================================================


def level(value: int, pass_level_map: PassLevelMap | None = None) -> OptionBag:
    """Set the data level of a field.

    Fields whose level exceeds the requested projection level are dropped.
    ``pass_level_map`` remaps the level used when projecting the field's own
    nested value, e.g. ``{DataLevel.DETAIL: DataLevel.BASIC}`` shows only
    the basic fields of a referenced model in a detail view.
    """
    options: dict[str, Any] = {"level": int(value)}
    if pass_level_map:
        options["pass_level_map"] = {int(k): int(v) for k, v in pass_level_map.items()}
    return OptionBag(options)


def basic(pass_level_map: PassLevelMap | None = None) -> OptionBag:
    return level(DataLevel.BASIC, pass_level_map)


def short(pass_level_map: PassLevelMap | None = None) -> OptionBag:
    return level(DataLevel.SHORT, pass_level_map)


def detail(pass_level_map: PassLevelMap | None = None) -> OptionBag:
    return level(DataLevel.DETAIL, pass_level_map)


def confidential(pass_level_map: PassLevelMap | None = None) -> OptionBag:
    return level(DataLevel.CONFIDENTIAL, pass_level_map)


def never(pass_level_map: PassLevelMap | None = None) -> OptionBag:
    return level(DataLevel.NEVER, pass_level_map)


def short_to_basic() -> OptionBag:
    return short({DataLevel.SHORT: DataLevel.BASIC})


def detail_to_basic() -> OptionBag:
    return detail({DataLevel.DETAIL: DataLevel.BASIC})


def detail_to_short() -> OptionBag:
    return detail({DataLevel.DETAIL: DataLevel.SHORT})


# =============================================================================
# Values and requirements
# =============================================================================


def default(value: Any) -> OptionBag:
    """Default for a missing value: a literal or a zero-argument factory."""
    return OptionBag({"default": value})


def important(importance: int = 100) -> OptionBag:
    """Keep this copy of the field over nearer ancestors when merging."""
    return OptionBag({"importance": importance})


def required(value: bool | Callable[[Any], bool] = True) -> OptionBag:
    """Mark a field required, or required when ``value(instance)`` is true."""
    return OptionBag({"required": value})


def optional(value: bool = True) -> OptionBag:
    return OptionBag({"required": not value})


def present(value: bool | Callable[[Any], bool] = True) -> OptionBag:
    return OptionBag({"present": value})


def readonly(value: bool = True) -> OptionBag:
    return OptionBag({"readonly": value})


def autogen() -> OptionBag:
    """A read-only field filled in by the system."""
    return OptionBag({"readonly": True, "autogen": True})


def no_persist() -> OptionBag:
    """An in-memory field."""
    return OptionBag({"no_persist": True})


def coerce(fn: Callable[[Any], Any]) -> OptionBag:
    """Materialize the raw value with ``fn`` instead of the schema type."""
    return OptionBag({"type": fn})


# =============================================================================
# Relations
# =============================================================================


def reference(model: str | None = None, is_array: bool | None = None) -> OptionBag:
    """Mark a field as a reference to another model."""
    options: dict[str, Any] = {"reference": True}
    if model is not None:
        options["model"] = model
    if is_array is not None:
        options["is_array"] = is_array
    return OptionBag(options)


def virtual(
    ref: str | type,
    local_field: str,
    foreign_field: str,
    *,
    just_one: bool = False,
    count: bool = False,
    match: Mapping[str, Any] | None = None,
    options: Mapping[str, Any] | None = None,
) -> OptionBag:
    """A relation resolved from ``local_field`` against another model's ``foreign_field``."""
    data: dict[str, Any] = {
        "ref": ref,
        "local_field": local_field,
        "foreign_field": foreign_field,
        "just_one": just_one,
        "count": count,
    }
    if match is not None:
        data["match"] = dict(match)
    if options is not None:
        data["options"] = dict(options)
    return OptionBag(data)


def tag(*tags: str | Iterable[str]) -> OptionBag:
    """Add tags to a field; tags from repeated annotations accumulate."""
    flat: list[str] = []
    for item in tags:
        if isinstance(item, str):
            flat.append(item)
        else:
            flat.extend(item)
    return OptionBag({"tags": flat}, reverse_concat_resolver("tags"))


def annotate(name: str, *bags: OptionBag) -> Callable[[type], type]:
    """Class decorator attaching option bags to a field by name.

    Useful for fields declared without ``Annotated`` or inherited from a
    base class.
    """

    def decorate(cls: type) -> type:
        declared = dict(vars(cls).get(FIELD_OPTIONS_ATTR) or {})
        declared[name] = (*declared.get(name, ()), *bags)
        setattr(cls, FIELD_OPTIONS_ATTR, declared)
        return cls

    return decorate


# =============================================================================
# Class config
# =============================================================================


def config(resolver: OptionsResolver | None = None, **options: Any) -> Callable[[type], type]:
    """Class decorator adding config keys to the class's own config."""

    def decorate(cls: type) -> type:
        class_options(cls).add(options, resolver)
        return cls

    return decorate


def mixin(*classes: type) -> Callable[[type], type]:
    """Class decorator mixing in the fields and behaviors of ``classes``.

    Earlier classes take precedence. Stacked decorators accumulate; the
    decorator closest to the class is applied first and keeps precedence.
    """
    if not classes or any(not isinstance(c, type) for c in classes):
        raise RegistryError(f"mixin() expects classes, got {classes!r}")
    return config(reverse_concat_resolver("mixin_classes"), mixin_classes=list(classes))


def index(fields: Mapping[str, Any], **options: Any) -> Callable[[type], type]:
    """Class decorator declaring a compound index, kept as an opaque option."""
    entry = {"fields": dict(fields), "options": options}
    return config(concat_resolver("indexes"), indexes=[entry])
