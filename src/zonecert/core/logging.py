"""Logging utilities for zonecert."""

import logging
import sys

from ..config.models import LoggingConfig


_loggers: dict[str, logging.Logger] = {}
_root_configured = False


def setup_logging(config: LoggingConfig) -> logging.Logger:
    """Set up logging based on configuration.

    Args:
        config: Logging configuration

    Returns:
        Root logger for the application
    """
    global _root_configured

    if _root_configured:
        return logging.getLogger("zonecert")

    logger = logging.getLogger("zonecert")
    logger.setLevel(getattr(logging, config.level))

    # Remove existing handlers
    logger.handlers.clear()

    formatter = logging.Formatter(config.format)

    # Console handler; stdout belongs to the MCP stdio transport
    if config.console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(getattr(logging, config.level))
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if config.file_path:
        file_handler = logging.FileHandler(config.file_path)
        file_handler.setLevel(getattr(logging, config.level))
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    _root_configured = True
    _loggers["zonecert"] = logger

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name.

    Args:
        name: Logger name (will be prefixed with 'zonecert.')

    Returns:
        Logger instance
    """
    full_name = f"zonecert.{name}" if not name.startswith("zonecert") else name

    if full_name in _loggers:
        return _loggers[full_name]

    logger = logging.getLogger(full_name)
    _loggers[full_name] = logger

    return logger


def quiet_acme_library(verbose: bool) -> None:
    """Silence the acme library's own chatter unless running verbose."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.getLogger("acme").setLevel(level)
    logging.getLogger("josepy").setLevel(level)
