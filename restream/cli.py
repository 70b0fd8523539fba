#!/usr/bin/env python3
"""Command-line interface for restream.

This module provides two commands driven by the configured rules:
- show: print the rewritten source of a module
- run: execute a module as __main__ with the rules installed

Example:
    >>> from restream.cli import parse_arguments
    >>> args = parse_arguments(["--config", "restream.yaml", "show", "myapp.views"])
"""

import argparse
import runpy
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from restream.core.constants import RESTREAM_VERSION, ConfigKey
from restream.core.validators import ValidationError
from restream.infrastructure.config_manager import (
    ConfigError,
    ConfigManager,
    ConfigSource,
    set_global_config,
)
from restream.infrastructure.logger import LogLevel, Logger, get_logger, set_global_logger
from restream.loader.module_loader import ModuleLoader
from restream.rules import build_loader
from restream.stream.channel import registry_from_config
from restream.stream.errors import StreamError
from restream.transforms.base import TransformError

DESCRIPTION = "restream - rewrite Python sources before they are compiled"


class CLIError(Exception):
    """Exception raised for CLI-related errors."""


def parse_arguments(args: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        args: Argument list to parse (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace

    Raises:
        SystemExit: On invalid arguments or --help/--version
        CLIError: If the configuration file is missing
    """
    parser = argparse.ArgumentParser(
        prog="restream",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Print a module's source after the configured rules rewrote it
  restream --config restream.yaml show myapp.views

  # Run a module with the rules installed
  restream --config restream.yaml run myapp.server --port 8000
        """,
    )

    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {RESTREAM_VERSION}",
    )

    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        type=str,
        help="Configuration file path (YAML format)",
    )

    log_group = parser.add_argument_group("logging options")

    log_group.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    log_group.add_argument(
        "--log-file",
        metavar="FILE",
        type=str,
        help="Also write logs to this file",
    )

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")
    commands.required = True

    show = commands.add_parser("show", help="Print the rewritten source of a module")
    show.add_argument("identifier", metavar="IDENTIFIER", help="Dotted module name")

    run = commands.add_parser("run", help="Run a module as __main__ with the rules installed")
    run.add_argument("module", metavar="MODULE", help="Dotted module name")
    run.add_argument("args", metavar="ARGS", nargs=argparse.REMAINDER, help="Module arguments")

    parsed = parser.parse_args(args)

    _validate_arguments(parsed)

    return parsed


def _validate_arguments(args: argparse.Namespace) -> None:
    if args.config:
        config_path = Path(args.config)

        if not config_path.exists():
            raise CLIError(f"Configuration file not found: {args.config}")

        if not config_path.is_file():
            raise CLIError(f"Configuration path is not a file: {args.config}")


def load_configuration(args: argparse.Namespace) -> ConfigManager:
    """
    Build the configuration from the file and command-line overrides.

    Args:
        args: Parsed arguments namespace

    Returns:
        Configuration manager

    Raises:
        CLIError: If the configuration file cannot be loaded
    """
    config = ConfigManager()

    if args.config:
        try:
            config.load_file(args.config)
        except ConfigError as e:
            raise CLIError(str(e)) from e

    if args.debug:
        config.set(ConfigKey.LOGGING_LEVEL, "DEBUG", source=ConfigSource.CLI_ARGS)

    if args.log_file:
        config.set(ConfigKey.LOGGING_FILE, args.log_file, source=ConfigSource.CLI_ARGS)

    return config


def setup_logging(config: ConfigManager) -> Logger:
    """
    Setup logging based on configuration.

    Args:
        config: Configuration manager

    Returns:
        Configured logger, also installed as the package logger
    """
    logger = Logger("restream", level=config.get(ConfigKey.LOGGING_LEVEL, "INFO"))

    log_file = config.get(ConfigKey.LOGGING_FILE)
    if log_file:
        logger.add_handler(logger.create_file_handler(log_file))

    set_global_logger(logger)
    return logger


def show_source(loader: ModuleLoader, identifier: str, out: TextIO) -> int:
    """
    Write the rewritten source of identifier to out.

    Raises:
        CLIError: If no rule routes identifier
    """
    routed = loader.route(identifier)
    if routed is None:
        raise CLIError(f"No rule routes module: {identifier}")

    path, routing = routed
    with loader.registry.host.open(routing.pathname(path)) as stream:
        source = stream.read()

    out.write(source.decode("utf-8", errors="replace"))
    return 0


def run_module(loader: ModuleLoader, module: str, argv: List[str]) -> int:
    """
    Run module as __main__ with loader installed.

    Args:
        loader: Loader carrying the configured rules
        module: Dotted module name
        argv: Arguments exposed to the module as sys.argv[1:]
    """
    saved_argv = sys.argv
    sys.argv = [module] + list(argv)
    loader.register()
    try:
        runpy.run_module(module, run_name="__main__", alter_sys=True)
    finally:
        loader.unregister()
        sys.argv = saved_argv
    return 0


def print_banner(logger: Logger) -> None:
    logger.info("=" * 60)
    logger.info(f"restream v{RESTREAM_VERSION}")
    logger.info(DESCRIPTION)
    logger.info("=" * 60)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Argument list (defaults to sys.argv[1:])

    Returns:
        Process exit code
    """
    try:
        args = parse_arguments(argv)
        config = load_configuration(args)
        set_global_config(config)
        logger = setup_logging(config)

        registry = registry_from_config(config)
        loader = build_loader(config, registry=registry)

        if args.command == "show":
            return show_source(loader, args.identifier, sys.stdout)

        print_banner(logger)
        return run_module(loader, args.module, args.args)

    except (CLIError, ConfigError, ValidationError, StreamError, TransformError) as e:
        if get_logger().is_enabled_for(LogLevel.DEBUG):
            get_logger().exception("Command failed", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
