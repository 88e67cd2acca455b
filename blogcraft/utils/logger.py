"""
Logger setup for the blog generation pipeline.

Module loggers are plain ``logging.getLogger(__name__)`` loggers under the
``blogcraft`` namespace. The CLI configures the ``blogcraft`` package logger
once and every module logger propagates to it.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Level names wrapped in ANSI colors, for interactive terminals."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        color = self.COLORS.get(levelname)
        if color:
            record.levelname = f"{color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def _stdout_formatter() -> logging.Formatter:
    formatter_cls = ColoredFormatter if sys.stdout.isatty() else logging.Formatter
    return formatter_cls(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)


def setup_logger(
    name: str = "blogcraft",
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Configure the package logger: stdout always, plus a UTF-8 file when given.

    Calling it again for the same name only updates the level.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level.upper() if level else logging.INFO)

    if logger.handlers:
        return logger

    logger.propagate = False

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    handlers[0].setFormatter(_stdout_formatter())

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        handlers.append(file_handler)

    for handler in handlers:
        logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
