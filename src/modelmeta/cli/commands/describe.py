"""Describe commands for the modelmeta CLI."""

import argparse
import importlib

from ...core.config import RegistryConfig
from ...core.exceptions import RegistryError
from ...metadata.descriptor import ModelDescriptor
from ...metadata.registry import Registry


def add_describe_arguments(parser: argparse.ArgumentParser) -> None:
    """Add the arguments shared by registry commands.

    Args:
        parser: Subcommand parser to extend.
    """
    parser.add_argument("module", help="Importable module that defines the models")
    parser.add_argument(
        "--registry",
        default=None,
        help="Name of the Registry attribute in the module (default: first found)",
    )


def load_registry(module_name: str, attribute: str | None = None) -> Registry:
    """Import a module and return the registry it defines.

    Args:
        module_name: Dotted module path.
        attribute: Registry attribute name. The first ``Registry`` found in
            the module namespace is used when omitted.

    Raises:
        RegistryError: If the module defines no registry.
    """
    module = importlib.import_module(module_name)
    if attribute is not None:
        registry = getattr(module, attribute, None)
        if not isinstance(registry, Registry):
            raise RegistryError(f"{module_name}.{attribute} is not a Registry")
        return registry

    for value in vars(module).values():
        if isinstance(value, Registry):
            return value
    raise RegistryError(f"No Registry found in module {module_name}")


def handle_list(args, config: RegistryConfig) -> None:
    """Handle list command.

    Args:
        args: Parsed command arguments.
        config: CLI configuration.
    """
    registry = load_registry(args.module, args.registry)
    for name in registry.names():
        print(f"{name:<30} {registry.get_metadata(name).kind.value}")


def handle_describe(args, config: RegistryConfig) -> None:
    """Handle describe command.

    Args:
        args: Parsed command arguments.
        config: CLI configuration; its default level applies when
            ``--level`` is not given.
    """
    registry = load_registry(args.module, args.registry)
    descriptor = registry.get_metadata(args.model)
    level = args.level if args.level is not None else config.default_level
    _print_descriptor(descriptor, level)


def _print_descriptor(descriptor: ModelDescriptor, level: int) -> None:
    print(f"{descriptor.name} ({descriptor.kind.value})")
    print("=" * 72)

    if descriptor.superclass is not None:
        print(f"Superclass: {descriptor.superclass.__name__}")
    if descriptor.config.mixin_classes:
        print(f"Mixins: {', '.join(c.__name__ for c in descriptor.config.mixin_classes)}")
    if descriptor.discriminator_key:
        print(f"Discriminator: {descriptor.discriminator_key}")
        children = descriptor.discriminator_children
        if children:
            print(f"Variants: {', '.join(c.__name__ for c in children)}")

    if descriptor.is_enum:
        print()
        for name, value in descriptor.enums.items():
            print(f"  {name} = {value!r}")
        return

    print()
    print(f"{'Field':<20} {'Type':<24} {'Level':>6}  {'Source':<16} Flags")
    print("-" * 72)
    for name, field in descriptor.combined_fields.items():
        field_level = field.level if field.level is not None else descriptor.default_level
        visible = field_level is None or field_level <= level
        flags = [
            flag
            for flag, on in (
                ("method", field.is_method),
                ("getter", field.is_getter),
                ("ref", field.is_reference),
                ("required", field.is_required()),
                ("hidden", not visible and not field.is_method),
            )
            if on
        ]
        source = getattr(field.source, "__name__", "-")
        shown_level = "-" if field_level is None else str(field_level)
        print(f"{name:<20} {field.type_name:<24} {shown_level:>6}  {source:<16} {' '.join(flags)}")
