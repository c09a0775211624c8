#!/usr/bin/env python3
"""
Structured logging for caught exceptions.

Every ``except`` block in build_status ends in one of three ways, each with a
helper here so the log line always carries the same structured fields
(``error_type``, ``exception_class``, ``context``):

    log_and_continue()       - one item of a batch failed; keep going
    log_and_return_default() - an optional lookup failed; substitute a value
    log_and_raise()          - the caller must see the failure
"""

import logging
from typing import Any, NoReturn


def _error_extra(error: Exception, context: dict[str, Any], error_type: str) -> dict[str, Any]:
    return {
        "error_type": error_type,
        "exception_class": type(error).__name__,
        "context": context,
    }


def log_and_continue(
    logger: logging.Logger,
    error: Exception,
    context: dict[str, Any],
    error_type: str = "Operation",
    level: str = "warning",
) -> None:
    """
    Log a failure that is isolated to one item.

    Args:
        logger: Module logger
        error: The caught exception
        context: Identifiers of the failed item (build_id, record_id, ...)
        error_type: Name of the operation that failed
        level: Logger method to use ("warning" or "error")

    Example:
        except ParseError as e:
            log_and_continue(logger, e, {"record_id": record_id}, "Timeline log hydration", level="error")
            log = None
    """
    getattr(logger, level.lower())(
        f"{error_type} failed: {error}",
        extra=_error_extra(error, context, error_type),
    )


def log_and_return_default(
    logger: logging.Logger,
    error: Exception,
    context: dict[str, Any],
    default_value: Any = None,
    error_type: str = "Operation",
) -> Any:
    """Log a warning and hand back ``default_value`` in place of the failed result."""
    extra = _error_extra(error, context, error_type)
    extra["default_value"] = str(default_value)
    logger.warning(f"{error_type} failed, returning default value: {error}", extra=extra)
    return default_value


def log_and_raise(
    logger: logging.Logger,
    error: Exception,
    context: dict[str, Any],
    error_type: str = "Operation",
) -> NoReturn:
    """
    Log ``error`` with its traceback, then re-raise the same object.

    Raises:
        The exception passed in
    """
    logger.error(
        f"{error_type} failed critically: {error}",
        exc_info=True,
        extra=_error_extra(error, context, error_type),
    )
    raise error
