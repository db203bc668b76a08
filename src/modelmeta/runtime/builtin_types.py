"""Customized types with their own modelize/to_object pair.

``Date``, ``Email`` and ``UUID`` are registered on every registry built with
``register_builtins`` enabled. Applications provide further types with
``registry.provide(CustomType(...))``.
"""

from __future__ import annotations

import datetime
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from ..metadata.registry import Registry


def _identity(value: Any) -> Any:
    return value


@dataclass(frozen=True)
class CustomType:
    """A named value type that is not a model.

    Attributes:
        name: Registered name referenced from schemas.
        modelize: Converts a raw value into the runtime value.
        to_object: Converts a runtime value back into plain data.
        python_types: Runtime types already in converted form; ``modelize``
            is skipped for them.
    """

    name: str
    modelize: Callable[[Any], Any] = _identity
    to_object: Callable[[Any], Any] = _identity
    python_types: tuple[type, ...] = field(default_factory=tuple)

    def coerce(self, raw: Any) -> Any:
        if self.python_types and isinstance(raw, self.python_types):
            return raw
        return self.modelize(raw)


def parse_date(raw: Any) -> datetime.datetime | datetime.date:
    """Parse ISO-8601 strings and POSIX timestamps (seconds, UTC)."""
    if isinstance(raw, (datetime.datetime, datetime.date)):
        return raw
    if isinstance(raw, bool):
        raise TypeError(f"Cannot convert {raw!r} to a date")
    if isinstance(raw, (int, float)):
        return datetime.datetime.fromtimestamp(raw, tz=datetime.timezone.utc)
    if isinstance(raw, str):
        text = raw.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return datetime.datetime.fromisoformat(text)
    raise TypeError(f"Cannot convert {type(raw).__name__} to a date")


def format_date(value: Any) -> Any:
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    return value


def parse_uuid(raw: Any) -> uuid.UUID:
    if isinstance(raw, uuid.UUID):
        return raw
    return uuid.UUID(str(raw))


def format_uuid(value: Any) -> Any:
    return str(value) if isinstance(value, uuid.UUID) else value


DATE = CustomType("Date", parse_date, format_date, (datetime.datetime, datetime.date))
EMAIL = CustomType("Email")
UUID = CustomType("UUID", parse_uuid, format_uuid, (uuid.UUID,))

BUILTIN_TYPES = (DATE, EMAIL, UUID)


def register_builtin_types(registry: "Registry") -> None:
    for custom in BUILTIN_TYPES:
        if not registry.has_metadata(custom.name):
            registry.provide(custom)
