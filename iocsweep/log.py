"""Logging setup: TRACE level, colored console output and a UTC file log."""

import logging
import socket
import time
from pathlib import Path
from typing import Optional, Union

import click

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

LOGGER_NAME = "iocsweep"

LEVEL_COLORS = {
    "TRACE": "bright_black",
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "magenta",
}


class ConsoleFormatter(logging.Formatter):
    """``[LEVEL] message`` with the level name colored."""

    def __init__(self, color: bool = True):
        super().__init__("%(message)s")
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        level = record.levelname
        if self.color:
            level = click.style(level, fg=LEVEL_COLORS.get(level))
        return f"[{level}] {message}"


class UTCFileFormatter(logging.Formatter):
    converter = time.gmtime

    def __init__(self):
        super().__init__("[%(asctime)s] %(levelname)s %(message)s", datefmt="%Y-%m-%dT%H:%M:%SZ")


def parse_level(level: Union[str, int]) -> int:
    """Resolve 'trace', 'debug', 'info', ... or a numeric level."""
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name == "TRACE":
        return TRACE
    value = logging.getLevelName(name)
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def log_file_path(log_dir: Union[str, Path], hostname: Optional[str] = None) -> Path:
    return Path(log_dir) / f"iocsweep_{hostname or socket.gethostname()}.log"


def setup_logging(
    level: Union[str, int] = "info",
    log_dir: Union[str, Path] = ".",
    log_file: bool = True,
    color: bool = True,
) -> logging.Logger:
    """Configure the package logger once at startup and return it.

    Replaces handlers left over from an earlier call so repeated CLI
    invocations in one interpreter do not duplicate output.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(parse_level(level))
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setFormatter(ConsoleFormatter(color=color))
    logger.addHandler(console)

    if log_file:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file_path(log_dir), mode="a", encoding="utf-8")
        file_handler.setFormatter(UTCFileFormatter())
        logger.addHandler(file_handler)

    return logger
