"""
Logging setup for build_status.

Two output shapes:
- console: one colored line per record for interactive runs, or JSON with ``--json-logs``
- log file: always JSON, one document per line, for CI artifact upload

Anything passed as ``extra={...}`` (url, status_code, build_id, ...) becomes a
top-level key of the JSON document.

Usage:
    from build_status.core.logging_config import get_logger

    logger = get_logger(__name__)
    logger.info("Resolving latest build", extra={"definition_id": 5868, "branch": "refs/heads/main"})
"""

import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
CONSOLE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# httpx/httpcore log every request and connection event at INFO/DEBUG
QUIET_LOGGERS = ("httpx", "httpcore", "hpack")

# Attributes every LogRecord carries; anything else arrived through `extra=`
_RESERVED_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "extra_fields"}


class JSONFormatter(logging.Formatter):
    """Render a record as a single-line JSON document."""

    def format(self, record: logging.LogRecord) -> str:
        document: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            document["exception"] = self.formatException(record.exc_info)

        document.update(getattr(record, "extra_fields", {}))
        for key, value in vars(record).items():
            if key not in _RESERVED_RECORD_ATTRS:
                document.setdefault(key, value)

        return json.dumps(document, default=str)


class ContextFormatter(logging.Formatter):
    """Console formatter that colors the level name when stderr is a terminal."""

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
        if sys.stderr.isatty():
            record.levelname = f"{self.COLORS.get(levelname, '')}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # Records are shared between handlers
            record.levelname = levelname


def _console_handler(level: int, json_output: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(ContextFormatter(fmt=CONSOLE_FORMAT, datefmt=CONSOLE_DATE_FORMAT))
    return handler


def _file_handler(level: int, log_file: Path) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter())
    return handler


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    json_output: bool = False,
) -> None:
    """
    Replace the root logger's handlers with build_status console/file handlers.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL); unknown names mean INFO
        log_file: Also write JSON lines to this file (parent directories are created)
        json_output: Use JSON on the console too

    Example:
        setup_logging(level="DEBUG")
        setup_logging(log_file=Path(".tmp/logs/build_status.log"), json_output=True)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(_console_handler(log_level, json_output))
    if log_file:
        root_logger.addHandler(_file_handler(log_level, log_file))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Module logger; pass ``__name__``."""
    return logging.getLogger(name)


def log_with_context(logger: logging.Logger, level: str, message: str, **context: Any) -> None:
    """
    Log ``message`` with keyword arguments as structured fields.

    Example:
        log_with_context(logger, "info", "Timeline resolved", build_id=1626454, record_count=42)
    """
    getattr(logger, level.lower())(message, extra={"extra_fields": context})
