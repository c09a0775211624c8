"""
Core Infrastructure - Logging and Secure Configuration

This package provides centralized infrastructure utilities that should be used
throughout the application instead of direct library calls.

Usage:
    from build_status.core import get_config, get_logger

    logger = get_logger(__name__)
    ado_config = get_config().get_build_status_config()
"""

from ..secure_config import (
    BuildStatusConfig,
    ConfigurationError,
    SecureConfig,
    get_config,
    project_from_config,
    validate_config_on_startup,
)
from .logging_config import get_logger, log_with_context, setup_logging

__all__ = [
    # Configuration
    "get_config",
    "validate_config_on_startup",
    "project_from_config",
    "ConfigurationError",
    "SecureConfig",
    "BuildStatusConfig",
    # Logging
    "get_logger",
    "setup_logging",
    "log_with_context",
]
