#!/usr/bin/env python3
"""Heatmiser Wi-Fi - a Heatmiser V3 protocol engine.

This module wraps logger to provide console/file logging for the CLI & daemon.
"""

from __future__ import annotations

import logging
import shutil
import sys
from datetime import datetime as dt
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler

import colorlog

from .version import VERSION

DEFAULT_FMT = "%(asctime)s.%(msecs)03d %(message)s"
DEFAULT_DATEFMT = "%H:%M:%S"

CONSOLE_COLS = int(shutil.get_terminal_size(fallback=(int(2e3), 24)).columns - 1)

CONSOLE_FMT = f"%(asctime)s %(levelname).1s %(message).{CONSOLE_COLS - 26}s"
LOGFILE_FMT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

LOG_COLOURS = {
    "DEBUG": "white",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "bold_red",
    "CRITICAL": "bold_red",
}  # default_log_colors


class _Formatter:  # format asctime with configurable precision
    """Formatter instances convert a LogRecord to text."""

    converter = None  # was: time.localtime
    default_time_format = "%Y-%m-%dT%H:%M:%S.%f"
    precision = 3

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        """Return the creation time (asctime) of the LogRecord as formatted text.

        Allows for sub-second precision, using datetime instead of time objects.
        """
        result = dt.fromtimestamp(record.created).strftime(
            datefmt or self.default_time_format
        )
        if "f" not in (datefmt or self.default_time_format):
            return result
        precision = self.precision or -1
        return result[: precision - 6] if -1 <= precision < 6 else result


class ColoredFormatter(_Formatter, colorlog.ColoredFormatter):  # type: ignore[misc]
    pass


class Formatter(_Formatter, logging.Formatter):  # type: ignore[misc]
    pass


class StdErrFilter(logging.Filter):  # record.levelno >= logging.WARNING
    """For sys.stderr, process only warnings & errors."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Return True if the record is to be processed."""  # WARNING-30, ERROR-40
        return record.levelno >= logging.WARNING


class StdOutFilter(logging.Filter):  # record.levelno < logging.WARNING
    """For sys.stdout, process only info & debug."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Return True if the record is to be processed."""  # INFO-20, DEBUG-10
        return record.levelno < logging.WARNING


def set_logging(
    logger: logging.Logger,
    cc_console: bool = False,
    file_name: str | None = None,
    rotate_backups: int = 0,
    rotate_bytes: int | None = None,
    level: int = logging.INFO,
) -> None:
    """Create/configure handlers, formatters, etc.

    Parameters:
    - rotate_backups: keep this many copies, and rotate at midnight unless:
    - rotate_bytes:   rotate log files when log > rotate_bytes
    """

    logger.setLevel(level)

    # as set_logging() may be called several times: to avoid duplicates in logs...
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler: logging.Handler

    if file_name:
        if rotate_bytes:
            handler = RotatingFileHandler(
                file_name, maxBytes=rotate_bytes, backupCount=rotate_backups or 2
            )
        elif rotate_backups:
            handler = TimedRotatingFileHandler(
                file_name, when="MIDNIGHT", backupCount=rotate_backups
            )
        else:
            handler = logging.FileHandler(file_name)

        handler.setFormatter(Formatter(fmt=LOGFILE_FMT))
        handler.setLevel(logging.DEBUG)
        logger.addHandler(handler)

    if cc_console:  # CC: output to stdout/stderr
        console_fmt = ColoredFormatter(
            fmt=f"%(log_color)s{CONSOLE_FMT}",
            datefmt=DEFAULT_DATEFMT,
            reset=True,
            log_colors=LOG_COLOURS,
        )

        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(console_fmt)
        handler.setLevel(logging.WARNING)
        handler.addFilter(StdErrFilter())  # record.levelno >= .WARNING
        logger.addHandler(handler)

        handler = logging.StreamHandler(stream=sys.stdout)
        handler.setFormatter(console_fmt)
        handler.setLevel(logging.DEBUG)
        handler.addFilter(StdOutFilter())  # record.levelno < .WARNING
        logger.addHandler(handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
        return

    logger.propagate = False
    logger.info("heatmiser_wifi %s: logging started", VERSION)
