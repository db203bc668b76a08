"""Raw data to typed instance graphs."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from loguru import logger

from ..core.exceptions import MaterializationError
from .options import MISSING, ModelizeMeta, ModelizeOptions, is_identifier

if TYPE_CHECKING:
    from ..metadata.descriptor import ModelDescriptor
    from ..metadata.fields import FieldDescriptor


def materialize_model(descriptor: "ModelDescriptor", raw: Any, options: ModelizeOptions) -> Any:
    """Materialize ``raw`` as an instance of ``descriptor``'s class.

    Instances pass through unchanged. A discriminated input naming another
    registered variant is handed over to that variant.

    Raises:
        MaterializationError: On the first field that fails to coerce.
    """
    cls = descriptor.model_class
    if raw is None:
        return None
    if isinstance(raw, cls):
        return raw

    stub_id = MISSING
    if options.allow_reference and is_identifier(raw):
        stub_id = raw
        raw = {descriptor.id_field: raw}

    key = descriptor.discriminator_key
    if key and isinstance(raw, Mapping):
        variant_name = raw.get(key)
        if variant_name is None:
            raw = {**raw, key: descriptor.name}
        elif not (isinstance(variant_name, str) and variant_name.lower() == descriptor.name.lower()):
            variant = descriptor.find_variant(variant_name)
            if variant is not None:
                logger.debug(f"Dispatching {descriptor.name} to variant {variant.name}")
                return variant.materialize(raw, options)

    # Compose once so instances can delegate to mixin behaviors.
    descriptor.behaviors

    instance = cls.__new__(cls)
    base_path = options.meta.path if options.meta is not None else None

    for name, field in descriptor.combined_fields.items():
        if not _is_materialized(field):
            continue

        path = f"{base_path}.{name}" if base_path else name
        try:
            if not isinstance(raw, Mapping):
                raise TypeError(f"expected a mapping, got {type(raw).__name__} {raw!r}")
            value = field.modelize(
                raw.get(name, MISSING),
                options.derive(meta=ModelizeMeta(parent=instance, path=path), field=field),
            )
        except MaterializationError as e:
            # Element failures arrive unqualified, e.g. "tags[1]".
            error_path = e.path if e.model_class is not None else f"{descriptor.name}.{e.path}"
            raise MaterializationError(error_path, cls, e.cause) from e.cause
        except Exception as e:
            raise MaterializationError(f"{descriptor.name}.{name}", cls, e) from e

        if value is MISSING:
            continue
        setattr(instance, name, value)

        if options.attach_field_metadata:
            _attach(field, value, instance, path)

    if key and key not in descriptor.combined_fields and isinstance(raw, Mapping):
        instance.__dict__[key] = raw[key]
    if stub_id is not MISSING and descriptor.id_field not in descriptor.combined_fields:
        instance.__dict__[descriptor.id_field] = stub_id

    return instance


def _is_materialized(field: "FieldDescriptor") -> bool:
    if field.is_method or not field.is_public:
        return False
    if field.is_getter and not field.is_setter:
        return False
    return True


def _attach(field: "FieldDescriptor", value: Any, parent: Any, path: str) -> None:
    if field.is_map:
        return
    if field.is_array and isinstance(value, list):
        for index, item in enumerate(value):
            _attach_one(item, parent=parent, path=path, is_array=True, index=index)
    else:
        _attach_one(value, parent=parent, path=path, is_array=False)


def _attach_one(value: Any, **context: Any) -> None:
    attach = getattr(value, "attach", None)
    if callable(attach) and getattr(type(value), "__model_registry__", None) is not None:
        attach(**context)
