"""Main CLI entry point for icrbuild."""

import argparse
import logging
import sys
from pathlib import Path

from icrbuild.config.loader import ConfigLoader, get_config_value
from icrbuild.lib.formatters import CapitalizedHelpFormatter
from icrbuild.lib.logger import LOG_FORMATS, setup_logger
from icrbuild.lib.output import error, set_color_enabled
from icrbuild.version import format_version_info


def create_parser() -> argparse.ArgumentParser:
    """
    Create the argument parser.

    Configures the global options and registers the build arguments.

    Returns
    -------
    argparse.ArgumentParser
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="icrbuild",
        description="Build a Docker image in IBM Cloud Container Registry using builder contract",
        formatter_class=CapitalizedHelpFormatter,
    )

    # Global options
    parser.add_argument("--version", "-v", action="version", version=format_version_info())
    parser.add_argument("--config", "-c", type=Path, help="Config file path (default: auto-detect)")
    parser.add_argument("--region", help="IBM Cloud region for the default registry (default: from config)")
    parser.add_argument("--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--dry-run", action="store_true", help="Show what would happen")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("--log-format", choices=LOG_FORMATS, help="Log format (default: console)")

    parser._optionals.title = "Options"

    from icrbuild.commands import build

    build.register_arguments(parser)

    return parser


def configure_logging(args: argparse.Namespace, config: dict | None) -> logging.Logger:
    """
    Configure the icrbuild logger from flags and configuration.

    ``--verbose`` selects DEBUG and ``--quiet`` selects ERROR; otherwise
    the configured level applies. Settings missing from the configuration
    fall through to LOG_LEVEL and LOG_FORMAT in setup_logger().

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command-line arguments.
    config : dict or None
        Loaded configuration.

    Returns
    -------
    logging.Logger
        The configured "icrbuild" logger.
    """
    config = config or {}
    if args.verbose:
        level = "DEBUG"
    elif args.quiet:
        level = "ERROR"
    else:
        level = get_config_value(config, "logging.level")

    log_format = args.log_format or get_config_value(config, "logging.format")
    return setup_logger("icrbuild", level=level, log_format=log_format)


def main(argv: list[str] | None = None) -> int:
    """
    Main CLI entry point for the icrbuild command.

    Parses command-line arguments, loads configuration, creates command context,
    and runs the build.

    Parameters
    ----------
    argv : list[str], optional
        Arguments to parse, by default sys.argv[1:].

    Returns
    -------
    int
        Exit code: 0 for success, 1 for command failure, 2 for configuration error,
        130 for keyboard interrupt.
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.no_color:
        set_color_enabled(False)

    try:
        config = ConfigLoader(config_path=args.config).load()
    except Exception as e:
        setup_logger("icrbuild")
        if args.verbose:
            import traceback

            traceback.print_exc()
        error(f"Failed to load configuration: {e}")
        return 2

    logger = configure_logging(args, config)
    logger.info("icrbuild %s", format_version_info())
    logger.debug("Configuration sources: %s", config["_meta"]["config_sources"])

    ctx = {
        "config": config,
        "verbose": args.verbose,
        "quiet": args.quiet,
        "dry_run": args.dry_run,
        "args": args,
    }

    try:
        from icrbuild.commands import build

        return build.handle(ctx)

    except KeyboardInterrupt:
        print()
        return 130
    except Exception as e:
        error(f"Command failed: {e}")
        if ctx["verbose"]:
            import traceback

            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
