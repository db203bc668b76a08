"""Typed instance graphs to plain, level-filtered data."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from .options import ToObjectOptions

if TYPE_CHECKING:
    from ..metadata.descriptor import ModelDescriptor
    from ..metadata.fields import FieldDescriptor


def project_model(descriptor: "ModelDescriptor", obj: Any, options: ToObjectOptions) -> dict[str, Any] | None:
    """Project ``obj`` into a dict of the fields visible at ``options.level``.

    Fields with no level use the class's ``default_level``; fields with
    neither are always visible. Unset, protected and private fields are
    omitted.
    """
    if obj is None:
        return None

    level = options.level
    if level is None:
        level = options.registry.config.default_level if options.registry else None
    options = options.derive(level=level)

    result: dict[str, Any] = {}
    for name, field in descriptor.combined_fields.items():
        if field.is_method or not field.is_public:
            continue

        field_level = field.level if field.level is not None else descriptor.default_level
        if field_level is not None and level is not None and field_level > level:
            continue

        value = _read(obj, name, field)
        if value is _UNSET:
            continue
        result[name] = field.to_object(value, options)
    return result


class _Unset:
    pass


_UNSET: Any = _Unset()


def _read(obj: Any, name: str, field: "FieldDescriptor") -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name, _UNSET)
    if field.is_getter:
        return getattr(obj, name, _UNSET)
    values = getattr(obj, "__dict__", None)
    if values is None:
        return getattr(obj, name, _UNSET)
    return values.get(name, _UNSET)
