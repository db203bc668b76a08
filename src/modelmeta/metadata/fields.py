"""Merged per-field metadata.

A ``FieldDescriptor`` joins what the schema says about a field (its
structural type) with the option bag annotated on it and the class that
declared it. Descriptors of the same field coming from a class, its mixins
and its superclass are folded together with ``merge``.
"""

from __future__ import annotations

import copy
import datetime
from collections.abc import Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any

from ..core.exceptions import MaterializationError
from ..core.levels import DataLevel
from ..runtime.options import MISSING, ModelizeMeta, ModelizeOptions, ToObjectOptions, is_identifier
from ..schema.types import (
    DATE_TYPE,
    ID_TYPE,
    MMAP,
    NUMBER,
    REF,
    STRING,
    Modifier,
    Property,
    Type,
    TypeKind,
    classify,
    type_name,
)

if TYPE_CHECKING:
    from .descriptor import ModelDescriptor


class FieldDescriptor:
    """One field of a model after inheritance and mixins are merged.

    Attributes:
        name: Field name.
        prop: Schema property, or None for annotation-only fields.
        accessor: The class attribute backing the field (property or
            function), if any.
        options: Merged annotation bag, or None when nothing was annotated.
        source: Class that contributed this descriptor.
    """

    def __init__(
        self,
        name: str,
        prop: Property | None = None,
        accessor: Any = None,
        options: dict[str, Any] | None = None,
        source: type | None = None,
    ):
        self.name = name
        self.prop = prop
        self.accessor = accessor
        self.options = options
        self.source = source

    def __repr__(self) -> str:
        return (
            f"FieldDescriptor({self.name!r}, type={self.type_name!r}, "
            f"source={getattr(self.source, '__name__', None)!r})"
        )

    def merge(self, other: "FieldDescriptor | None") -> "FieldDescriptor":
        """Merge with a lower-precedence copy of the same field.

        Attributes of ``self`` win one by one, unless ``other`` is more
        important, in which case the roles are swapped.
        """
        if other is None:
            return self
        if other.importance is not None and (
            self.importance is None or other.importance > self.importance
        ):
            return other.merge(self)

        return FieldDescriptor(
            self.name,
            self.prop if self.prop is not None else other.prop,
            self.accessor if self.accessor is not None else other.accessor,
            self.options if self.options is not None else other.options,
            self.source if self.source is not None else other.source,
        )

    # -------------------------------------------------------------------------
    # Annotation-derived attributes
    # -------------------------------------------------------------------------

    def option(self, key: str, default: Any = None) -> Any:
        if self.options is None:
            return default
        return self.options.get(key, default)

    @property
    def importance(self) -> int | None:
        return self.option("importance")

    @property
    def level(self) -> int | None:
        level = self.option("level")
        if level is None and self.is_getter:
            return DataLevel.NEVER
        return level

    @property
    def pass_level_map(self) -> Mapping[int, int]:
        return self.option("pass_level_map") or {}

    @property
    def tags(self) -> list[str]:
        return list(self.option("tags") or [])

    @property
    def has_no_tags(self) -> bool:
        return not self.tags

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    @property
    def is_readonly(self) -> bool:
        readonly = self.option("readonly")
        if readonly is not None:
            return bool(readonly)
        return bool(self.prop and self.prop.readonly)

    def is_required(self, instance: Any = None) -> bool:
        """Whether the field is required, optionally evaluated for an instance."""
        required = self.option("required")
        if isinstance(required, bool):
            return required
        if callable(required):
            return bool(required(instance))
        if self.prop is not None:
            return not self.prop.optional
        return False

    def is_present(self, instance: Any = None) -> bool:
        present = self.option("present")
        if isinstance(present, bool):
            return present
        if callable(present):
            return bool(present(instance))
        return True

    # -------------------------------------------------------------------------
    # Type-derived predicates
    # -------------------------------------------------------------------------

    @property
    def kind(self) -> TypeKind:
        return classify(self.prop.type if self.prop is not None else None)

    @property
    def type_name(self) -> str:
        return type_name(self.prop.type) if self.prop is not None else "unknown"

    @property
    def is_public(self) -> bool:
        return self.prop is None or self.prop.modifier == Modifier.PUBLIC

    @property
    def is_method(self) -> bool:
        return self.kind == TypeKind.METHOD

    @property
    def is_getter(self) -> bool:
        getter = self.option("getter")
        if getter is not None:
            return bool(getter)
        return bool(self.prop and self.prop.getter)

    @property
    def is_setter(self) -> bool:
        setter = self.option("setter")
        if setter is not None:
            return bool(setter)
        return bool(self.prop and self.prop.setter)

    @property
    def is_array(self) -> bool:
        return self.kind == TypeKind.ARRAY

    @property
    def element_type(self) -> Type:
        """The property type, or the element type of an array."""
        if self.prop is None:
            return None
        return self.prop.type.element if self.is_array else self.prop.type

    @property
    def is_map(self) -> bool:
        t = self.prop.type if self.prop is not None else None
        return classify(t) == TypeKind.PARAMETERIZED and t.self_type == MMAP

    @property
    def is_reference(self) -> bool:
        """Whether the field is a ``Ref`` holding an identifier or a record."""
        t = self.element_type
        return classify(t) == TypeKind.PARAMETERIZED and t.self_type == REF

    @property
    def type(self) -> Type:
        """The target type: array elements and parameterized wrappers removed."""
        t = self.element_type
        if classify(t) == TypeKind.PARAMETERIZED:
            return t.argument
        return t

    @property
    def reference_name(self) -> str | None:
        t = self.type
        return t.name if classify(t) == TypeKind.REFERENCE else None

    def _references(self, name: str, type_: Type) -> bool:
        return classify(type_) == TypeKind.REFERENCE and type_.name == name

    @property
    def is_id(self) -> bool:
        return self._references(ID_TYPE, self.prop.type if self.prop is not None else None)

    @property
    def is_id_array(self) -> bool:
        return self.is_array and self._references(ID_TYPE, self.element_type)

    @property
    def is_date(self) -> bool:
        coerce = self.option("type")
        if coerce is not None:
            return coerce in (datetime.datetime, datetime.date)
        return self._references(DATE_TYPE, self.prop.type if self.prop is not None else None)

    @property
    def is_date_array(self) -> bool:
        return self.is_array and self._references(DATE_TYPE, self.element_type)

    @property
    def is_virtual_reference(self) -> bool:
        """A relation computed from a local/foreign key pair, not stored data."""
        return (
            self.option("ref") is not None
            and self.option("local_field") is not None
            and self.option("foreign_field") is not None
        )

    # -------------------------------------------------------------------------
    # Materialization
    # -------------------------------------------------------------------------

    def modelize(self, raw: Any, options: ModelizeOptions) -> Any:
        """Coerce the raw value of this field.

        Returns ``MISSING`` when the value is absent and nothing fills it in.

        Raises:
            MaterializationError: When a nested model fails; the path is
                prefixed with this field's name.
        """
        if raw is MISSING and self.options is not None and "default" in self.options:
            raw = self._default()

        if raw is MISSING and self.prop is not None and not self.prop.optional:
            if self.prop.type == STRING:
                return ""
            if self.prop.type == NUMBER:
                return 0

        if raw is MISSING or self.is_id:
            return raw

        coerce = self.option("type")
        if coerce is not None:
            return raw if raw is None else coerce(raw)

        if self.prop is None:
            target = self.option("model")
            if target is None or options.registry is None:
                return raw
            return self._modelize_with(options.registry.get_metadata(target), raw, options)

        if self.is_array:
            if raw is None:
                return None
            return [self._modelize_element(value, options, index=idx) for idx, value in enumerate(raw)]
        return self._modelize_item(raw, options)

    def _default(self) -> Any:
        value = self.options["default"]
        if callable(value):
            return value()
        if isinstance(value, (list, dict, set)):
            return copy.copy(value)
        return value

    def _modelize_element(
        self,
        value: Any,
        options: ModelizeOptions,
        *,
        index: int | None = None,
        key: str | None = None,
        type_: Type = None,
    ) -> Any:
        """Modelize one array element or map value.

        A failure that is not already a ``MaterializationError`` is raised as
        one whose path is the element's segment, e.g. ``tags[1]``, with no
        model class yet; the enclosing model qualifies it.
        """
        try:
            if key is not None:
                return self._modelize_type(type_, value, options, key=key)
            return self._modelize_item(value, options, index=index)
        except MaterializationError:
            raise
        except Exception as e:
            raise MaterializationError(self._segment(index, key), None, e) from e

    def _modelize_item(self, value: Any, options: ModelizeOptions, index: int | None = None) -> Any:
        t = self.element_type
        if classify(t) == TypeKind.PARAMETERIZED:
            if value is None:
                return None
            if t.self_type == MMAP:
                items = value.items() if isinstance(value, Mapping) else value
                return {key: self._modelize_element(v, options, key=key, type_=t.argument) for key, v in items}
            if t.self_type == REF:
                if is_identifier(value) and not options.allow_reference:
                    return value
                return self._modelize_type(t.argument, value, options, index=index)
            return value
        return self._modelize_type(t, value, options, index=index)

    def _modelize_type(
        self,
        type_: Type,
        value: Any,
        options: ModelizeOptions,
        *,
        index: int | None = None,
        key: str | None = None,
    ) -> Any:
        if classify(type_) != TypeKind.REFERENCE or options.registry is None:
            return value
        if not options.registry.has_metadata(type_.name):
            return value
        return self._modelize_with(
            options.registry.get_metadata(type_.name), value, options, index=index, key=key
        )

    def _modelize_with(
        self,
        descriptor: "ModelDescriptor",
        value: Any,
        options: ModelizeOptions,
        *,
        index: int | None = None,
        key: str | None = None,
    ) -> Any:
        parent = options.meta.parent if options.meta is not None else None
        path = options.meta.path if options.meta is not None else self.name
        meta = ModelizeMeta(parent=parent, path=path, is_array=index is not None, index=index)
        try:
            return descriptor.materialize(value, options.derive(meta=meta, field=self))
        except MaterializationError as e:
            raise e.prefixed(self._segment(index, key)) from e.cause

    def _segment(self, index: int | None, key: str | None) -> str:
        if index is not None:
            return f"{self.name}[{index}]"
        if key is not None:
            return f"{self.name}[{key!r}]"
        return self.name

    # -------------------------------------------------------------------------
    # Projection
    # -------------------------------------------------------------------------

    def to_object(self, value: Any, options: ToObjectOptions) -> Any:
        """Project the value of this field into plain data."""
        level = options.level
        if level is not None:
            level = self.pass_level_map.get(level, level)
        nested = options.derive(level=level, field=self)

        if value is None:
            return None
        if self.is_map:
            return {key: self._project_item(v, options, nested) for key, v in value.items()}
        if self.is_array:
            return [self._project_item(v, options, nested) for v in value]
        return self._project_item(value, options, nested)

    def _project_item(self, value: Any, options: ToObjectOptions, nested: ToObjectOptions) -> Any:
        if value is None:
            return None

        registry = options.registry
        name = self.reference_name
        if name is not None and registry is not None and registry.has_metadata(name):
            descriptor = registry.get_metadata(name)
            if descriptor.is_customized_type:
                return descriptor.to_object(value, options.derive(field=self))
            if descriptor.is_enum:
                return descriptor.to_object(value, options)
            if is_identifier(value) and not isinstance(value, descriptor.model_class):
                return value
            if registry.has_metadata(type(value)):
                # Discriminator variants project with their own fields.
                descriptor = registry.get_metadata(type(value))
            return descriptor.to_object(value, nested)

        return to_plain(value, nested)


def to_plain(value: Any, options: ToObjectOptions) -> Any:
    """Project a value whose type the schema does not pin down."""
    if value is None:
        return None
    if isinstance(value, Enum):
        return value.value
    if hasattr(value, "to_object") and callable(value.to_object):
        return value.to_object(level=options.level)
    if isinstance(value, Mapping):
        return {k: to_plain(v, options) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v, options) for v in value]
    return value
