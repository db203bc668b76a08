"""Per-class model metadata.

A ``ModelDescriptor`` is created as a skeleton when a class is registered.
Its config, field annotations and merged field map are resolved lazily on
the first metadata query and cached until the registry is reset.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping

from loguru import logger

from ..core.exceptions import RegistryError, SchemaError
from ..core.resolvers import OptionsBuilder
from ..runtime import materializer, projector
from ..runtime.options import ModelizeOptions, ToObjectOptions
from ..schema.provider import FieldOptionMap
from ..schema.types import Schema
from .behaviors import compose_behaviors
from .fields import FieldDescriptor

if TYPE_CHECKING:
    from ..runtime.builtin_types import CustomType
    from .registry import Registry

# Class attribute holding the class's own config option bags.
MODEL_OPTIONS_ATTR = "__model_options__"

# Config keys that are not passed down to subclasses.
_NON_INHERITED_KEYS = ("schema", "mixin_classes")


def class_options(cls: type) -> OptionsBuilder:
    """The builder collecting ``cls``'s own config bags, created on demand."""
    builder = vars(cls).get(MODEL_OPTIONS_ATTR)
    if builder is None:
        builder = OptionsBuilder()
        setattr(cls, MODEL_OPTIONS_ATTR, builder)
    return builder


class ModelKind(Enum):
    """What a registered name stands for."""

    MODEL = "model"
    ENUM = "enum"
    CUSTOM = "custom"


@dataclass
class ModelConfig:
    """Effective class-level configuration.

    Attributes:
        schema: Explicit schema overriding the provider's.
        discriminator_key: Field whose value names the variant to materialize.
        mixin_classes: Mixins ordered from highest to lowest precedence.
        default_level: Level of fields that do not declare one.
        id_field: Field receiving a bare identifier coerced into a record.
        to_object: Default keyword options for ``to_object``.
        to_json: Default keyword options for ``to_json``.
        options: Keys the core does not interpret.
    """

    schema: Schema | None = None
    discriminator_key: str | None = None
    mixin_classes: list[type] = field(default_factory=list)
    default_level: int | None = None
    id_field: str | None = None
    to_object: dict[str, Any] = field(default_factory=dict)
    to_json: dict[str, Any] = field(default_factory=dict)
    options: dict[str, Any] = field(default_factory=dict)

    CORE_KEYS = (
        "schema",
        "discriminator_key",
        "mixin_classes",
        "default_level",
        "id_field",
        "to_object",
        "to_json",
    )

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "ModelConfig":
        schema = options.get("schema")
        if isinstance(schema, dict):
            schema = Schema.from_dict(schema)
        elif schema is not None and not isinstance(schema, Schema):
            raise SchemaError(f"Config 'schema' must be a Schema or mapping, got {schema!r}")

        return cls(
            schema=schema,
            discriminator_key=options.get("discriminator_key"),
            mixin_classes=list(options.get("mixin_classes") or []),
            default_level=options.get("default_level"),
            id_field=options.get("id_field"),
            to_object=dict(options.get("to_object") or {}),
            to_json=dict(options.get("to_json") or {}),
            options={k: v for k, v in options.items() if k not in cls.CORE_KEYS},
        )

    def as_options(self) -> dict[str, Any]:
        """Flatten back into an option bag."""
        data: dict[str, Any] = dict(self.options)
        for key in self.CORE_KEYS:
            value = getattr(self, key)
            if value is not None and value != [] and value != {}:
                data[key] = value
        return data

    def inheritable(self) -> dict[str, Any]:
        data = self.as_options()
        for key in _NON_INHERITED_KEYS:
            data.pop(key, None)
        return data


class ModelDescriptor:
    """Metadata of one registered class, enum or customized type.

    Attributes:
        registry: Registry the descriptor belongs to.
        name: Registered name.
        model_class: The registered class.
        kind: MODEL, ENUM or CUSTOM.
        custom: Serializer pair of a CUSTOM descriptor.
    """

    def __init__(
        self,
        registry: "Registry",
        name: str,
        model_class: type,
        kind: ModelKind = ModelKind.MODEL,
        schema: Schema | None = None,
        custom: "CustomType | None" = None,
    ):
        self.registry = registry
        self.name = name
        self.model_class = model_class
        self.kind = kind
        self.custom = custom
        self._schema = schema

        self._config: ModelConfig | None = None
        self._field_options: dict[str, dict[str, Any]] | None = None
        self._combined_fields: dict[str, FieldDescriptor] | None = None
        self._resolving = False
        self._behaviors: Mapping[str, Any] | None = None
        self._behaviors_lock = threading.Lock()

    def __repr__(self) -> str:
        return f"ModelDescriptor({self.name!r}, kind={self.kind.value})"

    # -------------------------------------------------------------------------
    # Lazy resolution
    # -------------------------------------------------------------------------

    @property
    def is_resolved(self) -> bool:
        return self._combined_fields is not None

    @property
    def superclass(self) -> type | None:
        """Nearest registered model class on the MRO, looked up on access."""
        if self.kind != ModelKind.MODEL:
            return None
        return self.registry.nearest_registered(self.model_class)

    def invalidate(self) -> None:
        """Drop the cached resolution; the next query resolves again."""
        with self.registry.lock:
            self._config = None
            self._field_options = None
            self._combined_fields = None
            self._behaviors = None

    def resolve(self) -> "ModelDescriptor":
        """Resolve config, annotations and merged fields once."""
        if self._combined_fields is not None:
            return self

        with self.registry.lock:
            if self._combined_fields is not None:
                return self
            if self._resolving:
                raise RegistryError(f"Circular mixin or inheritance chain through {self.name}")

            self._resolving = True
            try:
                self._config = self._build_config()
                self._field_options = self._build_field_options()
                self._combined_fields = self._build_combined_fields()
            finally:
                self._resolving = False

        logger.debug(f"Resolved {self.name} with {len(self._combined_fields)} fields")
        return self

    @property
    def config(self) -> ModelConfig:
        if self._config is None:
            self.resolve()
        return self._config

    @property
    def schema(self) -> Schema:
        if self.config.schema is not None:
            return self.config.schema
        return self._schema if self._schema is not None else Schema(self.name)

    @property
    def field_options(self) -> dict[str, dict[str, Any]]:
        """Own per-field annotations, each folded into one bag."""
        if self._field_options is None:
            self.resolve()
        return self._field_options

    @property
    def combined_fields(self) -> dict[str, FieldDescriptor]:
        if self._combined_fields is None:
            self.resolve()
        return self._combined_fields

    def _own_option_builder(self) -> OptionsBuilder | None:
        return vars(self.model_class).get(MODEL_OPTIONS_ATTR)

    def _build_config(self) -> ModelConfig:
        if self.kind != ModelKind.MODEL:
            return ModelConfig()

        base: dict[str, Any] = {}
        if self.superclass is not None:
            base = self.registry.get_metadata(self.superclass).config.inheritable()

        own = self._own_option_builder()
        options = own.build(base) if own else dict(base)
        config = ModelConfig.from_options(options)

        for implicit in self._implicit_mixins(config.mixin_classes):
            config.mixin_classes.append(implicit)

        for mixin_class in config.mixin_classes:
            if not self.registry.has_metadata(mixin_class):
                logger.warning(f"{self.name}: mixin {mixin_class.__name__} is not registered, ignoring")
        return config

    def _implicit_mixins(self, configured: list[type]) -> list[type]:
        """Registered secondary bases not reachable through the superclass."""
        found = []
        for base in self.model_class.__bases__[1:]:
            if base in configured or base is self.superclass:
                continue
            if self.superclass is not None and issubclass(self.superclass, base):
                continue
            if self.registry.has_metadata(base):
                found.append(base)
        return found

    def _build_field_options(self) -> dict[str, dict[str, Any]]:
        if self.kind != ModelKind.MODEL:
            return {}
        declared: FieldOptionMap = self.registry.provider.field_options_for(self.model_class)
        return {name: OptionsBuilder(bags).build() for name, bags in declared.items()}

    def _ancestors(self) -> list["ModelDescriptor"]:
        """Ancestor descriptors, highest precedence first: mixins then superclass."""
        ancestors = []
        for mixin_class in self.config.mixin_classes:
            if self.registry.has_metadata(mixin_class):
                ancestors.append(self.registry.get_metadata(mixin_class))
        if self.superclass is not None:
            ancestors.append(self.registry.get_metadata(self.superclass))
        return ancestors

    def _own_fields(self) -> dict[str, FieldDescriptor]:
        schema = self.schema
        names = list(schema.prop_names)
        names.extend(n for n in self._field_options if n not in names)

        own = {}
        for name in names:
            own[name] = FieldDescriptor(
                name,
                prop=schema.prop(name),
                accessor=vars(self.model_class).get(name),
                options=self._field_options.get(name),
                source=self.model_class,
            )
        return own

    def _build_combined_fields(self) -> dict[str, FieldDescriptor]:
        if self.kind != ModelKind.MODEL:
            return {}

        own = self._own_fields()
        ancestors = self._ancestors()

        merged: dict[str, FieldDescriptor] = {}
        for ancestor in reversed(ancestors):
            for name, fd in ancestor.combined_fields.items():
                merged[name] = fd.merge(merged.get(name))
        for name, fd in own.items():
            merged[name] = fd.merge(merged.get(name))

        # Own declaration order, then the superclass's, then the mixins'.
        if self.superclass is not None:
            ancestors = [ancestors[-1], *ancestors[:-1]]
        order = list(own)
        for ancestor in ancestors:
            order.extend(n for n in ancestor.combined_fields if n not in order)
        return {name: merged[name] for name in order}

    # -------------------------------------------------------------------------
    # Discriminator
    # -------------------------------------------------------------------------

    @property
    def discriminator_key(self) -> str | None:
        return self.config.discriminator_key

    @property
    def discriminator_children(self) -> list[type]:
        """Registered descendants that take part in discriminator dispatch."""
        children = []
        pending = list(self.registry.children_of(self.model_class))
        while pending:
            child = pending.pop(0)
            if child in children:
                continue
            if self.registry.get_metadata(child).discriminator_key:
                children.append(child)
            pending.extend(self.registry.children_of(child))
        return children

    def find_variant(self, name: Any) -> "ModelDescriptor | None":
        """Descriptor of the registered descendant named ``name``."""
        if not isinstance(name, str) or not self.registry.has_metadata(name):
            return None
        candidate = self.registry.get_metadata(name)
        if candidate is self or candidate.kind != ModelKind.MODEL:
            return None
        if not issubclass(candidate.model_class, self.model_class):
            return None
        return candidate

    # -------------------------------------------------------------------------
    # Behaviors
    # -------------------------------------------------------------------------

    @property
    def lineage(self) -> list[type]:
        """The class, its mixins' lineages, then its superclass's; nearest first."""
        classes: list[type] = [self.model_class]
        for mixin_class in self.config.mixin_classes:
            if self.registry.has_metadata(mixin_class):
                classes.extend(self.registry.get_metadata(mixin_class).lineage)
            else:
                classes.append(mixin_class)
        if self.superclass is not None:
            classes.extend(self.registry.get_metadata(self.superclass).lineage)

        unique: list[type] = []
        for cls in classes:
            if cls not in unique:
                unique.append(cls)
        return unique

    @property
    def behaviors(self) -> Mapping[str, Any]:
        """Mixin methods and properties instances delegate to. Built once."""
        if self._behaviors is None:
            with self._behaviors_lock:
                if self._behaviors is None:
                    self._behaviors = compose_behaviors(self.model_class, self.lineage)
                    logger.debug(f"Composed {len(self._behaviors)} behaviors for {self.name}")
        return self._behaviors

    # -------------------------------------------------------------------------
    # Enums and customized types
    # -------------------------------------------------------------------------

    @property
    def is_enum(self) -> bool:
        return self.kind == ModelKind.ENUM

    @property
    def is_customized_type(self) -> bool:
        return self.kind == ModelKind.CUSTOM

    @property
    def enums(self) -> dict[str, Any]:
        if not self.is_enum:
            return {}
        return {member.name: member.value for member in self.model_class}

    @property
    def enum_type(self) -> str:
        values = self.enums.values()
        if any(isinstance(v, (int, float)) and not isinstance(v, bool) for v in values):
            return "number"
        return "string"

    @property
    def enum_values(self) -> list[Any]:
        values = list(self.enums.values())
        if self.enum_type == "number":
            return [v for v in values if isinstance(v, (int, float)) and not isinstance(v, bool)]
        return values

    def _coerce_enum(self, raw: Any) -> Any:
        if raw is None or isinstance(raw, self.model_class):
            return raw
        try:
            return self.model_class(raw)
        except ValueError:
            pass
        if isinstance(raw, str) and raw in self.model_class.__members__:
            return self.model_class.__members__[raw]
        if self.registry.config.strict_enums:
            raise ValueError(f"{raw!r} is not a valid {self.name}; expected one of {self.enum_values}")
        return raw

    # -------------------------------------------------------------------------
    # Materialization and projection
    # -------------------------------------------------------------------------

    @property
    def id_field(self) -> str:
        return self.config.id_field or self.registry.config.id_field

    @property
    def default_level(self) -> int | None:
        return self.config.default_level

    def materialize(self, raw: Any, options: ModelizeOptions | None = None) -> Any:
        """Turn raw data into an instance (or enum member, or custom value)."""
        options = options or ModelizeOptions(registry=self.registry)
        if options.registry is None:
            options = options.derive(registry=self.registry)

        if self.kind == ModelKind.ENUM:
            return self._coerce_enum(raw)
        if self.kind == ModelKind.CUSTOM:
            return raw if raw is None else self.custom.coerce(raw)
        return materializer.materialize_model(self, raw, options)

    def to_object(self, value: Any, options: ToObjectOptions | None = None) -> Any:
        """Project a value of this type into plain data."""
        options = options or ToObjectOptions(registry=self.registry)
        if options.registry is None:
            options = options.derive(registry=self.registry)

        if value is None:
            return None
        if self.kind == ModelKind.ENUM:
            return value.value if isinstance(value, Enum) else value
        if self.kind == ModelKind.CUSTOM:
            return self.custom.to_object(value)
        return projector.project_model(self, value, options)
