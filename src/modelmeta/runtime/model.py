"""Base class for registered models."""

from __future__ import annotations

import json
import types
from typing import Any, Mapping

from ..core.exceptions import MetadataNotFoundError
from .options import ModelizeOptions, ToObjectOptions

_ATTACHMENT_ATTR = "_attachment"


class StrictModel:
    """Base class giving registered models conversion methods.

    Subclasses are registered with a ``Registry``; registration binds the
    class to it. Instances delegate attribute lookups they cannot satisfy
    to the behaviors of their mixin classes.

    Example:
        registry = Registry()

        @registry.model
        class Name(StrictModel):
            first: str
            last: str

        name = Name.modelize({"first": "Ada", "last": "Lovelace"})
        name.to_object()  # {"first": "Ada", "last": "Lovelace"}
    """

    def __init__(self, **values: Any):
        for name, value in values.items():
            setattr(self, name, value)

    def __repr__(self) -> str:
        shown = ", ".join(
            f"{name}={value!r}" for name, value in vars(self).items() if name != _ATTACHMENT_ATTR
        )
        return f"{type(self).__name__}({shown})"

    # -------------------------------------------------------------------------
    # Metadata
    # -------------------------------------------------------------------------

    @classmethod
    def get_metadata(cls) -> Any:
        """The resolved descriptor of this class.

        Raises:
            MetadataNotFoundError: If the class is not registered.
        """
        registry = getattr(cls, "__model_registry__", None)
        if registry is None:
            raise MetadataNotFoundError(cls.__name__)
        return registry.get_metadata(cls)

    @classmethod
    def _behavior_table(cls) -> Mapping[str, Any]:
        registry = getattr(cls, "__model_registry__", None)
        if registry is None or not registry.has_metadata(cls):
            return {}
        return registry.get_metadata(cls).behaviors

    # -------------------------------------------------------------------------
    # Conversions
    # -------------------------------------------------------------------------

    @classmethod
    def modelize(
        cls,
        raw: Any,
        *,
        registry: Any = None,
        allow_reference: bool = False,
        attach_field_metadata: bool = False,
    ) -> Any:
        """Materialize raw data as an instance of this class (or a variant of it)."""
        registry = registry or getattr(cls, "__model_registry__", None)
        if registry is None:
            raise MetadataNotFoundError(cls.__name__)
        options = ModelizeOptions(
            registry=registry,
            allow_reference=allow_reference,
            attach_field_metadata=attach_field_metadata,
        )
        return registry.get_metadata(cls).materialize(raw, options)

    def to_object(self, level: int | None = None) -> dict[str, Any]:
        """Project into plain data, dropping fields above ``level``."""
        descriptor = type(self).get_metadata()
        defaults = descriptor.config.to_object
        if level is None:
            level = defaults.get("level")
        return descriptor.to_object(self, ToObjectOptions(level=level, registry=descriptor.registry))

    def to_json(self, level: int | None = None, **kwargs: Any) -> str:
        """Serialize the projection with ``json.dumps``.

        The class config's ``to_json`` mapping supplies defaults: ``level``
        for the projection, anything else for ``json.dumps``.
        """
        descriptor = type(self).get_metadata()
        defaults = dict(descriptor.config.to_json)
        default_level = defaults.pop("level", None)
        data = self.to_object(level=level if level is not None else default_level)
        return json.dumps(data, **{"default": str, **defaults, **kwargs})

    def attach(self, **values: Any) -> dict[str, Any]:
        """Update and return the context attached to this instance.

        Materialization with ``attach_field_metadata`` records ``parent``,
        ``path``, ``is_array`` and ``index`` here.
        """
        attachment = dict(self.__dict__.get(_ATTACHMENT_ATTR) or {})
        if values:
            attachment.update(values)
            object.__setattr__(self, _ATTACHMENT_ATTR, attachment)
        return dict(attachment)

    # -------------------------------------------------------------------------
    # Behavior delegation
    # -------------------------------------------------------------------------

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__") and name.endswith("__"):
            raise AttributeError(name)

        cls = type(self)
        behavior = cls._behavior_table().get(name)
        if behavior is not None:
            if isinstance(behavior, property):
                return behavior.__get__(self, cls)
            if isinstance(behavior, staticmethod):
                return behavior.__func__
            if isinstance(behavior, classmethod):
                return types.MethodType(behavior.__func__, cls)
            return types.MethodType(behavior, self)

        registry = getattr(cls, "__model_registry__", None)
        if registry is not None and registry.has_metadata(cls):
            field = registry.get_metadata(cls).combined_fields.get(name)
            if field is not None and not field.is_method and not field.is_getter:
                return None

        raise AttributeError(f"{cls.__name__!r} object has no attribute {name!r}")

    def __setattr__(self, name: str, value: Any) -> None:
        if not name.startswith("_") and not hasattr(type(self), name):
            behavior = type(self)._behavior_table().get(name)
            if isinstance(behavior, property):
                if behavior.fset is None:
                    raise AttributeError(f"property {name!r} of {type(self).__name__!r} has no setter")
                behavior.fset(self, value)
                return
        object.__setattr__(self, name, value)
