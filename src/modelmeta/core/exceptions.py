"""Custom exceptions for modelmeta."""

from __future__ import annotations

from typing import Any


class ModelMetaError(Exception):
    """Base exception for all modelmeta errors."""

    pass


class RegistryError(ModelMetaError):
    """Registry operation failed."""

    pass


class DuplicateRegistrationError(RegistryError):
    """A model name is already registered (names are case-insensitive)."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Model {name} has already been registered.")


class MetadataNotFoundError(RegistryError):
    """No metadata registered for the given name or class."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Metadata {key} not set")


class SchemaError(ModelMetaError):
    """Raised when a schema document or type hint cannot be converted."""

    pass


class ConfigError(ModelMetaError):
    """Configuration could not be loaded."""

    pass


class MaterializationError(ModelMetaError):
    """A field could not be coerced while materializing raw data.

    The path accumulates while the error travels up through nested
    materialization calls. The innermost model records ``Class.field`` and
    every enclosing field prefixes ``field:``, e.g. ``model:Child.foo`` or
    ``items[2]:Line.price``.

    Attributes:
        path: Route from the outermost model to the failing field.
        model_class: Outermost model class the error has reached.
        cause: The original exception raised by the failing coercion.
    """

    def __init__(self, path: str, model_class: Any = None, cause: BaseException | None = None):
        self.path = path
        self.model_class = model_class
        self.cause = cause
        super().__init__(self._format())

    def _format(self) -> str:
        name = getattr(self.model_class, "__name__", None)
        prefix = f"Failed to materialize {name}" if name else "Failed to materialize"
        if self.cause is None:
            return f"{prefix} at '{self.path}'"
        return f"{prefix} at '{self.path}': {self.cause}"

    def prefixed(self, segment: str, model_class: Any = None) -> "MaterializationError":
        """Return a copy whose path is prefixed with an enclosing field."""
        return MaterializationError(
            f"{segment}:{self.path}",
            model_class if model_class is not None else self.model_class,
            self.cause,
        )
