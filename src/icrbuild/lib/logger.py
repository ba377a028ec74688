"""
Dual-mode logging for the icrbuild CLI.

Provides human-readable console logs for interactive use and JSON
structured logs for CI systems that ingest them. Both modes write to
stderr so the build output on stdout stays untouched.
"""

import logging
import os
import sys

from pythonjsonlogger.json import JsonFormatter

LOG_FORMATS = ("console", "json")


def setup_logger(
    name: str = "icrbuild",
    level: str | None = None,
    log_format: str | None = None,
) -> logging.Logger:
    """
    Setup dual-mode logger for the CLI.

    Parameters
    ----------
    name : str, optional
        Logger name, by default "icrbuild". Module loggers under
        ``icrbuild.*`` propagate into it.
    level : str, optional
        Logging level name. Falls back to the LOG_LEVEL environment
        variable, then INFO.
    log_format : str, optional
        "console" or "json". Falls back to the LOG_FORMAT environment
        variable, then "console".

    Returns
    -------
    logging.Logger
        Configured logger instance

    Examples
    --------
    >>> logger = setup_logger("icrbuild", level="DEBUG")
    >>> logger.debug("Running IBM Container Registry build")

    Environment Variables
    ---------------------
    LOG_LEVEL : str
        Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL (default: INFO)
    LOG_FORMAT : str
        Output format: "console" or "json" (default: console)
    """
    logger = logging.getLogger(name)

    log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logger.setLevel(getattr(logging, log_level, logging.INFO))

    # Remove existing handlers to avoid duplicates if called multiple times
    logger.handlers.clear()

    fmt = (log_format or os.getenv("LOG_FORMAT", "console")).lower()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logger.level)

    if fmt == "json":
        formatter = _create_json_formatter()
    else:
        formatter = _create_console_formatter()

    handler.setFormatter(formatter)
    logger.addHandler(handler)

    # Don't propagate to root logger (prevents duplicate logs)
    logger.propagate = False

    return logger


class _SeverityJsonFormatter(JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        if "levelname" in log_record:
            log_record["severity"] = log_record.pop("levelname")


def _create_json_formatter() -> logging.Formatter:
    """
    Create JSON formatter.

    Extra fields from ``logger.info(..., extra={})`` are included
    automatically.
    """
    return _SeverityJsonFormatter(
        fmt="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )


def _create_console_formatter() -> logging.Formatter:
    """Create human-readable formatter."""
    return logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
