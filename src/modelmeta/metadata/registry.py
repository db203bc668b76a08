"""Model registry.

Maps registered names (case-insensitive) to model descriptors. A registry
is always an explicit instance; every class it registers is bound to it so
that ``StrictModel.modelize`` and friends find their metadata without a
module-level default.
"""

from __future__ import annotations

import threading
from enum import Enum
from typing import Any, Callable

from loguru import logger

from ..core.config import RegistryConfig
from ..core.exceptions import (
    DuplicateRegistrationError,
    MetadataNotFoundError,
    RegistryError,
)
from ..runtime.builtin_types import CustomType, register_builtin_types
from ..runtime.options import ModelizeOptions, ToObjectOptions
from ..schema.provider import AnnotationSchemaProvider, SchemaProvider, model_name
from ..schema.types import Schema
from .descriptor import ModelDescriptor, ModelKind, class_options

# Class attributes binding a registered class to its registry.
MODEL_NAME_ATTR = "__model_name__"
MODEL_REGISTRY_ATTR = "__model_registry__"


class Registry:
    """Registry of models, enums and customized types.

    Example:
        registry = Registry()

        @registry.model
        class Name(StrictModel):
            first: str
            last: str

        @registry.model(discriminator_key="kind")
        class Shape(StrictModel):
            kind: str

        registry.get_metadata("name").combined_fields.keys()  # first, last
    """

    def __init__(
        self,
        config: RegistryConfig | None = None,
        provider: SchemaProvider | None = None,
    ) -> None:
        self.config = config or RegistryConfig()
        self.provider: SchemaProvider = provider or AnnotationSchemaProvider()
        self.lock = threading.RLock()
        self._descriptors: dict[str, ModelDescriptor] = {}
        self._by_class: dict[Any, ModelDescriptor] = {}

        if self.config.register_builtins:
            register_builtin_types(self)

    def __contains__(self, key: Any) -> bool:
        return self.has_metadata(key)

    def __len__(self) -> int:
        return len(self._descriptors)

    # =========================================================================
    # Registration
    # =========================================================================

    def register(
        self,
        name: str,
        cls: Any,
        schema: Schema | None = None,
        *,
        kind: ModelKind = ModelKind.MODEL,
        custom: CustomType | None = None,
    ) -> ModelDescriptor:
        """Register ``cls`` under ``name`` and return its skeleton descriptor.

        Args:
            name: Registered name. Case-insensitive and unique.
            cls: Model class, or ``Enum`` subclass for kind ENUM. Ignored
                for kind CUSTOM.
            schema: Structural schema. Derived from ``cls`` by the schema
                provider when omitted.
            kind: What the name stands for.
            custom: Serializer pair for kind CUSTOM.

        Raises:
            DuplicateRegistrationError: If ``name`` is already registered.
            RegistryError: If ``cls`` is already registered under another name.
        """
        key = name.lower()
        with self.lock:
            if key in self._descriptors:
                raise DuplicateRegistrationError(name)
            if cls is not None and cls in self._by_class:
                raise RegistryError(
                    f"{cls.__name__} is already registered as {self._by_class[cls].name}"
                )

            if kind == ModelKind.MODEL and schema is None:
                schema = self.provider.schema_for(cls, name)

            descriptor = ModelDescriptor(
                self,
                name,
                cls,
                kind=kind,
                schema=schema,
                custom=custom,
            )
            self._descriptors[key] = descriptor

            if cls is not None:
                self._by_class[cls] = descriptor
                setattr(cls, MODEL_NAME_ATTR, name)
                if kind == ModelKind.MODEL:
                    setattr(cls, MODEL_REGISTRY_ATTR, self)
            if kind == ModelKind.MODEL:
                self._invalidate_subclasses(cls)

        superclass = descriptor.superclass
        logger.debug(
            f"Registered {kind.value} {name}"
            + (f" (superclass {superclass.__name__})" if superclass is not None else "")
        )
        return descriptor

    def model(
        self,
        cls: type | None = None,
        /,
        *,
        name: str | None = None,
        schema: Schema | None = None,
        **config: Any,
    ) -> Any:
        """Class decorator registering a model, with optional config keys.

        Usable bare (``@registry.model``) or with arguments
        (``@registry.model(discriminator_key="kind")``).
        """

        def decorate(target: type) -> type:
            if config:
                class_options(target).add(config)
            self.register(name or target.__name__, target, schema=schema)
            return target

        if cls is not None:
            return decorate(cls)
        return decorate

    def provide(
        self,
        value: Any,
        extra_schema: Schema | None = None,
        name: str | None = None,
    ) -> ModelDescriptor:
        """Register an enum, a customized type, or a plain model class."""
        if isinstance(value, CustomType):
            return self.register(name or value.name, None, kind=ModelKind.CUSTOM, custom=value)
        if isinstance(value, type) and issubclass(value, Enum):
            return self.register(name or value.__name__, value, extra_schema, kind=ModelKind.ENUM)
        if isinstance(value, type):
            return self.register(name or model_name(value), value, extra_schema)
        raise RegistryError(f"Cannot provide {value!r}: expected a class, Enum or CustomType")

    def nearest_registered(self, cls: type) -> type | None:
        """The nearest registered model class on ``cls``'s MRO, excluding ``cls``."""
        for base in cls.__mro__[1:]:
            descriptor = self._by_class.get(base)
            if descriptor is not None and descriptor.kind == ModelKind.MODEL:
                return base
        return None

    def _invalidate_subclasses(self, cls: type) -> None:
        # A base registered after its subclasses changes what they inherit.
        for descriptor in self._descriptors.values():
            if (
                descriptor.kind == ModelKind.MODEL
                and descriptor.model_class is not cls
                and issubclass(descriptor.model_class, cls)
                and descriptor.is_resolved
            ):
                logger.debug(f"Re-resolving {descriptor.name} after {cls.__name__} was registered")
                descriptor.invalidate()

    # =========================================================================
    # Lookup
    # =========================================================================

    def _find(self, key: Any) -> ModelDescriptor | None:
        if isinstance(key, str):
            return self._descriptors.get(key.lower())
        if isinstance(key, CustomType):
            return self._descriptors.get(key.name.lower())
        try:
            return self._by_class.get(key)
        except TypeError:
            return None

    def has_metadata(self, key: Any) -> bool:
        """Whether a name, class or customized type is registered."""
        return self._find(key) is not None

    def get_metadata(self, key: Any) -> ModelDescriptor:
        """Return the resolved descriptor of a name, class or customized type.

        Raises:
            MetadataNotFoundError: If nothing is registered under ``key``.
        """
        descriptor = self._find(key)
        if descriptor is None:
            raise MetadataNotFoundError(getattr(key, "__name__", None) or str(key))
        return descriptor.resolve()

    def children_of(self, cls: type) -> list[type]:
        """Registered classes whose nearest registered base is ``cls``."""
        return [
            child
            for child, descriptor in self._by_class.items()
            if descriptor.kind == ModelKind.MODEL and self.nearest_registered(child) is cls
        ]

    def names(self) -> list[str]:
        return sorted(d.name for d in self._descriptors.values())

    def reset(self) -> None:
        """Drop every registration and cached resolution."""
        with self.lock:
            self._descriptors.clear()
            self._by_class.clear()
        logger.debug("Registry reset")

        if self.config.register_builtins:
            register_builtin_types(self)

    # =========================================================================
    # Conversions
    # =========================================================================

    def materialize(
        self,
        key: Any,
        raw: Any,
        *,
        allow_reference: bool = False,
        attach_field_metadata: bool = False,
    ) -> Any:
        """Materialize ``raw`` as the type registered under ``key``."""
        options = ModelizeOptions(
            registry=self,
            allow_reference=allow_reference,
            attach_field_metadata=attach_field_metadata,
        )
        return self.get_metadata(key).materialize(raw, options)

    def project(self, key: Any, obj: Any, level: int | None = None) -> Any:
        """Project ``obj`` as the type registered under ``key``."""
        return self.get_metadata(key).to_object(obj, ToObjectOptions(level=level, registry=self))

    def converter(self, key: Any) -> Callable[[Any], Any]:
        """A one-argument function materializing values as ``key``.

        Meant for the ``coerce`` field annotation.
        """
        return lambda raw: self.materialize(key, raw)
