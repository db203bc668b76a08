"""CLI entry point for modelmeta."""

import argparse
import sys
from typing import NoReturn

from loguru import logger

from ..core.config import RegistryConfig
from . import commands


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="modelmeta",
        description="Inspect model metadata registries",
    )
    parser.add_argument("-V", "--version", action="version", version="%(prog)s 0.1.0")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")
    parser.add_argument("-c", "--config", default=None, help="TOML configuration file")

    subparsers = parser.add_subparsers(dest="command", required=False)

    # list
    list_parser = subparsers.add_parser("list", help="List registered names")
    commands.add_describe_arguments(list_parser)

    # describe
    describe_parser = subparsers.add_parser("describe", help="Show the merged fields of a model")
    commands.add_describe_arguments(describe_parser)
    describe_parser.add_argument("model", help="Registered model name")
    describe_parser.add_argument(
        "-l",
        "--level",
        type=int,
        default=None,
        help="Projection level used to mark hidden fields",
    )

    return parser


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        config = RegistryConfig.from_env_or_file(args.config)
        if args.command == "list":
            commands.handle_list(args, config)
        elif args.command == "describe":
            commands.handle_describe(args, config)
        else:
            parser.print_help()

        sys.exit(0)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
