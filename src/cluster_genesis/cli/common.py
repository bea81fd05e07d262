"""Logging setup and error reporting shared by the command line tools."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import yaml
from pydantic import ValidationError

from cluster_genesis.errors import ClusterGenesisError
from cluster_genesis.types import SSZError

logger = logging.getLogger(__name__)

_HANDLER_NAME = "cluster-genesis-cli"


class ColoredFormatter(logging.Formatter):
    """Logging formatter with ANSI colors for terminals."""

    GREY = "\x1b[38;5;244m"
    BLUE = "\x1b[38;5;39m"
    GREEN = "\x1b[38;5;40m"
    YELLOW = "\x1b[38;5;220m"
    RED = "\x1b[38;5;196m"
    CYAN = "\x1b[38;5;51m"
    RESET = "\x1b[0m"

    LEVEL_COLORS = {
        logging.DEBUG: GREY,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format a record as `time LEVEL logger: message` with colors."""
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)
        timestamp = f"{self.CYAN}{self.formatTime(record, self.datefmt)}{self.RESET}"
        levelname = f"{color}{record.levelname:8}{self.RESET}"
        name = f"{self.BLUE}{record.name}{self.RESET}"
        return f"{timestamp} {levelname} {name}: {record.getMessage()}"


def setup_logging(
    verbose: bool = False,
    no_color: bool = False,
    quiet: bool = False,
    stream: TextIO | None = None,
) -> None:
    """
    Configure the root logger for a command line run.

    Logs go to stderr so stdout carries only the command's result (a
    public key or a genesis hash). Calling this again replaces the handler
    installed by the previous call.
    """
    if quiet:
        level = logging.WARNING
    else:
        level = logging.DEBUG if verbose else logging.INFO

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setLevel(level)

    if no_color:
        formatter = logging.Formatter(
            "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    else:
        formatter = ColoredFormatter(datefmt="%Y-%m-%d %H:%M:%S")
    handler.setFormatter(formatter)

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)
    root.setLevel(level)
    root.addHandler(handler)


def describe_error(error: Exception) -> str:
    """One line naming what went wrong, for the `error: ...` output."""
    if isinstance(error, (ClusterGenesisError, SSZError)):
        return error.message
    if isinstance(error, ValidationError):
        first = error.errors(include_url=False)[0]
        where = ".".join(str(part) for part in first["loc"])
        return f"invalid {where}: {first['msg']}" if where else first["msg"]
    if isinstance(error, yaml.YAMLError):
        return f"invalid YAML: {error}"
    if isinstance(error, OSError) and error.filename is not None:
        return f"{error.strerror or error}: {error.filename}"
    return str(error)


def report_error(error: Exception) -> int:
    """Print `error: ...` to stderr and return the failure exit code."""
    logger.debug("Command failed", exc_info=error)
    print(f"error: {describe_error(error)}", file=sys.stderr)
    return 1


HANDLED_ERRORS = (
    ClusterGenesisError,
    SSZError,
    ValidationError,
    yaml.YAMLError,
    OSError,
    ValueError,
)
"""Errors reported as a single `error: ...` line instead of a traceback."""
