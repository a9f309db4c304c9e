"""Logging configuration for Resume Refiner."""

import logging
import sys

# Modules log through logging.getLogger(__name__), i.e. under the "src" package
LOGGER_NAME = "src"

# Default log format
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Track if logging has been configured
_configured = False


def configure_logging(
    level: str | None = None,
    format_string: str = LOG_FORMAT,
    date_format: str = DATE_FORMAT,
) -> logging.Logger:
    """Configure and return the application logger.

    Module loggers created with ``logging.getLogger(__name__)`` are its
    children and write through its stderr handler.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               Defaults to INFO if not specified.
        format_string: Format string for log messages.
        date_format: Format string for timestamps.

    Returns:
        The configured application logger.
    """
    global _configured

    logger = logging.getLogger(LOGGER_NAME)

    if level is None:
        level = "INFO"
    log_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(log_level)

    if not _configured:
        formatter = logging.Formatter(format_string, datefmt=date_format)

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)

        logger.handlers.clear()
        logger.addHandler(console_handler)

        # Prevent propagation to root logger
        logger.propagate = False

        _configured = True
    else:
        for handler in logger.handlers:
            handler.setLevel(log_level)

    return logger


def reset_logging() -> None:
    """Reset logging configuration (useful for testing)."""
    global _configured

    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True

    _configured = False
