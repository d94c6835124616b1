"""
Logging setup for regeneration runs.

Plain text on the ``patchregen`` logger for CLI runs, or JSON records stamped
with the current run id for services wrapping the regenerator.

Usage:
    from patchregen.logging_config import configure_logging, setup_structured_logging, run_id_var

    # Text logging for a CLI invocation
    configure_logging(run_id="regen-my-workflow")

    # JSON logging (for services wrapping the regenerator)
    setup_structured_logging()
    run_id_var.set("regen-123")

Environment Variables:
    PATCHREGEN_LOG_DIR - Write a log file into this directory
    PATCHREGEN_LOG_LEVEL - Set log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime
from pathlib import Path
from typing import Optional

from .config import settings

# Context var for the regeneration run id (stamped into structured records)
run_id_var: ContextVar[Optional[str]] = ContextVar("run_id", default=None)

_STANDARD_ATTRS = {
    "name",
    "msg",
    "args",
    "created",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "thread",
    "threadName",
    "exc_info",
    "exc_text",
    "stack_info",
    "message",
    "taskName",
}


class StructuredFormatter(logging.Formatter):
    """JSON formatter that includes the current run id.

    Each entry has timestamp, level, logger name, message, run id and any
    extra fields attached to the record.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "run_id": run_id_var.get(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def setup_structured_logging(log_level: str = "INFO") -> None:
    """Configure the root logger for JSON output on stdout.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())
    handler.setLevel(getattr(logging, log_level.upper()))

    root_logger.addHandler(handler)


def configure_logging(
    run_id: Optional[str] = None,
    log_dir: Optional[Path] = None,
    log_level: Optional[str] = None,
    log_to_console: bool = True,
    verbose: bool = False,
) -> logging.Logger:
    """
    Configure the ``patchregen`` logger for a run.

    Args:
        run_id: Run identifier (used in the log filename)
        log_dir: Log directory; falls back to settings.log_dir, no file when unset
        log_level: Log level (defaults to settings.log_level)
        log_to_console: Whether to log to stderr
        verbose: Lower the console threshold to DEBUG

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("patchregen")
    logger.handlers.clear()

    level_name = (log_level or settings.log_level).upper()
    if not hasattr(logging, level_name):
        level_name = "INFO"
    logger.setLevel(logging.DEBUG if verbose else getattr(logging, level_name))

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.DEBUG if verbose else getattr(logging, level_name))
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_dir is None and settings.log_dir:
        log_dir = Path(settings.log_dir)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = log_dir / f"{run_id or 'patchregen'}_{timestamp}.log"

        file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

        logger.info(f"Logging to: {log_path}")

    if run_id:
        run_id_var.set(run_id)

    return logger
