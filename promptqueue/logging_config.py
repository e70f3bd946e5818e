"""
Logging configuration for promptqueue.

- New timestamped log file on every start
- Keeps last N files (configurable)
- Human-readable fixed-width format
- Console output in dev mode (with colour)
- Debug toggle from the panel switches the 'promptqueue' logger to DEBUG
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import Config

LOGGER_NAME = "promptqueue"

# Level to return to when debug is switched off
_base_level = logging.INFO


class PromptQueueFormatter(logging.Formatter):
    """Fixed-width format: timestamp  LEVEL  [logger]  message"""

    FMT = "%(asctime)s  %(levelname)-6s [%(name)-12s] %(message)s"
    DATE_FMT = "%Y-%m-%d %H:%M:%S"

    def format(self, record: logging.LogRecord) -> str:
        # Strip 'promptqueue.' prefix from logger name for brevity
        if record.name.startswith(LOGGER_NAME + "."):
            record.name = record.name[len(LOGGER_NAME) + 1:]
        return super().format(record)


class ColorFormatter(PromptQueueFormatter):
    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def configure_logging(config: "Config") -> Path:
    """
    Set up logging for this run.
    Creates a new timestamped log file. Cleans up old files.
    Returns the path of the new log file.
    """
    global _base_level

    log_dir = config.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)

    # Clean up old log files
    existing = sorted(log_dir.glob("*.log"))
    keep = config.log_keep
    for old in existing[: max(0, len(existing) - keep + 1)]:
        try:
            old.unlink()
        except OSError:
            pass

    # New file for this run
    filename = datetime.now().strftime("%Y-%m-%d_%H%M%S") + ".log"
    log_file = log_dir / filename

    _base_level = getattr(logging, config.log_level, logging.INFO)

    # Handlers pass everything; the logger level decides (so debug can be toggled)
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setFormatter(PromptQueueFormatter(
        fmt=PromptQueueFormatter.FMT,
        datefmt=PromptQueueFormatter.DATE_FMT,
    ))

    handlers: list[logging.Handler] = [file_handler]

    # Console handler: dev mode only
    if config.dev_mode:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(ColorFormatter(
            fmt=PromptQueueFormatter.FMT,
            datefmt=PromptQueueFormatter.DATE_FMT,
        ))
        handlers.append(console_handler)

    # Configure root logger for 'promptqueue.*' namespace
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(_base_level)
    logger.handlers.clear()
    for h in handlers:
        logger.addHandler(h)
    logger.propagate = False

    # Root logger stays quieter
    root = logging.getLogger()
    root.setLevel(logging.WARNING)

    return log_file


def apply_debug(enabled: bool) -> None:
    """Switch the 'promptqueue' logger between DEBUG and the configured level."""
    logging.getLogger(LOGGER_NAME).setLevel(logging.DEBUG if enabled else _base_level)
