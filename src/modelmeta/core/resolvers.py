"""Option bags and the strategies used to merge them.

Per-field annotations and per-class configs accumulate as a sequence of
option bags. Each bag carries the resolver that folds it onto whatever was
accumulated before it:

- ``overwrite_resolver`` (default): keys of the new bag replace old keys.
- ``latest_resolver``: the new bag replaces everything accumulated so far.
- ``concat_resolver(key)``: like overwrite, but the list under ``key`` is
  the new items followed by the old ones.
- ``reverse_concat_resolver(key)``: the old items followed by the new ones.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping

OptionsResolver = Callable[[Mapping[str, Any], Mapping[str, Any]], dict[str, Any]]


def overwrite_resolver(base: Mapping[str, Any], options: Mapping[str, Any]) -> dict[str, Any]:
    return {**base, **options}


def latest_resolver(base: Mapping[str, Any], options: Mapping[str, Any]) -> dict[str, Any]:
    return dict(options)


def concat_resolver(key: str) -> OptionsResolver:
    """Merge like ``overwrite_resolver`` but prepend the new items of ``key``."""

    def resolve(base: Mapping[str, Any], options: Mapping[str, Any]) -> dict[str, Any]:
        merged = {**base, **options}
        merged[key] = [*(options.get(key) or []), *(base.get(key) or [])]
        return merged

    return resolve


def reverse_concat_resolver(key: str) -> OptionsResolver:
    """Merge like ``overwrite_resolver`` but append the new items of ``key``."""

    def resolve(base: Mapping[str, Any], options: Mapping[str, Any]) -> dict[str, Any]:
        merged = {**base, **options}
        merged[key] = [*(base.get(key) or []), *(options.get(key) or [])]
        return merged

    return resolve


DEFAULT_OPTIONS_RESOLVER: OptionsResolver = overwrite_resolver


@dataclass(eq=False)
class OptionBag:
    """A bag of options together with the resolver that merges it.

    Bags are produced by the annotation helpers. They can be used as
    ``Annotated`` metadata on a type hint, or as a decorator on a function
    (e.g. the getter of a property), which records the bag on the function.
    """

    options: dict[str, Any] = field(default_factory=dict)
    resolver: OptionsResolver = DEFAULT_OPTIONS_RESOLVER

    def __call__(self, target: Any) -> Any:
        fn = target.fget if isinstance(target, property) else target
        bags = list(getattr(fn, "__field_options__", ()))
        bags.append(self)
        fn.__field_options__ = tuple(bags)
        return target


class OptionsBuilder:
    """Accumulates option bags and folds them once into a plain dict.

    Example:
        builder = OptionsBuilder()
        builder.add({"mixin_classes": [A]}, reverse_concat_resolver("mixin_classes"))
        builder.add({"mixin_classes": [B]}, reverse_concat_resolver("mixin_classes"))
        builder.build()  # {"mixin_classes": [A, B]}
    """

    def __init__(self, bags: Iterable[OptionBag] = ()) -> None:
        self._bags: list[OptionBag] = list(bags)

    def add(
        self,
        options: Mapping[str, Any] | OptionBag,
        resolver: OptionsResolver | None = None,
    ) -> "OptionsBuilder":
        if isinstance(options, OptionBag):
            self._bags.append(options)
        else:
            self._bags.append(OptionBag(dict(options), resolver or DEFAULT_OPTIONS_RESOLVER))
        return self

    def extend(self, bags: Iterable[OptionBag]) -> "OptionsBuilder":
        self._bags.extend(bags)
        return self

    @property
    def bags(self) -> tuple[OptionBag, ...]:
        return tuple(self._bags)

    def __bool__(self) -> bool:
        return bool(self._bags)

    def __len__(self) -> int:
        return len(self._bags)

    def build(self, base: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Fold every bag, in insertion order, onto ``base``."""
        result: dict[str, Any] = dict(base or {})
        for bag in self._bags:
            result = bag.resolver(result, bag.options)
        return result
