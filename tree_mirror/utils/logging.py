"""Logging configuration for Tree Mirror.

Provides consistent logging across all modules with:
- JSON or text output formats
- Timestamps in ISO format
- Node paths attached to event records via ``extra``
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union


TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Attributes every LogRecord carries; anything else came in through ``extra``
_RESERVED_ATTRS = frozenset((
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "message", "taskName",
))


class JsonFormatter(logging.Formatter):
    """Format log records as JSON lines for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # e.g. logger.debug("changed", extra={"node_path": "sub/b.txt"})
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            try:
                json.dumps(value)
                log_data[key] = value
            except (TypeError, ValueError):
                log_data[key] = str(value)

        return json.dumps(log_data)


def _build_formatter(json_output: bool) -> logging.Formatter:
    if json_output:
        return JsonFormatter()
    return logging.Formatter(TEXT_FORMAT, DATE_FORMAT)


def _coerce_level(level: Union[int, str]) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return level


def _attach_handlers(
    logger: logging.Logger,
    level: int,
    json_output: bool,
    log_file: Optional[Path],
    console: bool,
) -> None:
    formatter = _build_formatter(json_output)
    handlers: List[logging.Handler] = []

    if console:
        handlers.append(logging.StreamHandler(sys.stderr))
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)


def get_logger(
    name: str,
    level: Union[int, str] = logging.INFO,
    json_output: bool = False,
    log_file: Optional[Path] = None,
    console: bool = True
) -> logging.Logger:
    """Get a logger with its own handlers attached.

    Calling it again for the same name returns the logger unchanged.

    Args:
        name: Logger name, normally a ``tree_mirror`` sub-logger
        level: Logging level name or number
        json_output: Emit JSON lines instead of text
        log_file: Optional path to log file
        console: Also log to stderr

    Example:
        >>> logger = get_logger("tree_mirror.watch")
        >>> logger.info("Node changed", extra={"node_path": "sub/b.txt"})
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    level = _coerce_level(level)
    logger.setLevel(level)
    _attach_handlers(logger, level, json_output, log_file, console)
    return logger


def configure_root_logger(
    level: Union[int, str] = logging.INFO,
    json_output: bool = False,
    log_file: Optional[Path] = None
) -> None:
    """Replace the root logger's handlers with stderr (and optionally a file).

    Call this once at startup (the CLI does). Library code only ever
    logs through ``logging.getLogger(__name__)``.
    """
    root_logger = logging.getLogger()
    level = _coerce_level(level)
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    _attach_handlers(root_logger, level, json_output, log_file, console=True)
