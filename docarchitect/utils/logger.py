"""
Logging utilities for Document Architect.

Every module logs through a child of the ``docarchitect`` logger so the
CLI can configure handlers in one place.
"""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional


DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
ROOT_LOGGER_NAME = "docarchitect"

_loggers: dict = {}
_configured = False


def setup_logging(
    level: str = "INFO",
    format_string: Optional[str] = None,
    log_file: Optional[Path | str] = None,
    console: bool = True,
) -> None:
    """
    Configure logging for the application.

    Should be called once at startup. Calling it again replaces the
    handlers installed by the previous call.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_string: Custom format string (uses DEFAULT_FORMAT if None)
        log_file: Optional path to log file
        console: Whether to log to stderr (default True)
    """
    global _configured

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    formatter = logging.Formatter(
        format_string or DEFAULT_FORMAT,
        datefmt=DEFAULT_DATE_FORMAT
    )

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    # stdout is reserved for documents and JSON results
    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for the given module name.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger under the ``docarchitect`` hierarchy
    """
    if not _configured:
        setup_logging()

    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        logger_name = name
    else:
        logger_name = f"{ROOT_LOGGER_NAME}.{name}"

    if logger_name not in _loggers:
        _loggers[logger_name] = logging.getLogger(logger_name)

    return _loggers[logger_name]


class LogContext:
    """
    Context manager that logs the start, end and duration of an operation.

    Example:
        with LogContext(logger, "Generating PRD", project="Demo"):
            ...
    """

    def __init__(self, logger: logging.Logger, operation: str, **context):
        self.logger = logger
        self.operation = operation
        self.context = context
        self.start_time = None

    @property
    def elapsed(self) -> float:
        if self.start_time is None:
            return 0.0
        return (datetime.now() - self.start_time).total_seconds()

    def __enter__(self):
        self.start_time = datetime.now()
        context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
        if context_str:
            self.logger.info(f"Starting: {self.operation} ({context_str})")
        else:
            self.logger.info(f"Starting: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = self.elapsed

        if exc_type is None:
            self.logger.info(f"Completed: {self.operation} ({duration:.2f}s)")
        else:
            self.logger.error(
                f"Failed: {self.operation} ({duration:.2f}s) - {exc_type.__name__}: {exc_val}"
            )

        return False


def log_json(logger: logging.Logger, message: str, data: dict, level: int = logging.DEBUG) -> None:
    """Log JSON-serializable data in a readable format."""
    formatted = json.dumps(data, indent=2, default=str)
    logger.log(level, f"{message}:\n{formatted}")
