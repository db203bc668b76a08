"""CLI command handlers."""

from .describe import add_describe_arguments, handle_describe, handle_list, load_registry

__all__ = [
    "add_describe_arguments",
    "handle_describe",
    "handle_list",
    "load_registry",
]
