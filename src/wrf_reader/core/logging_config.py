"""
WRF Reader Logging Configuration

This module provides logging configuration for the WRF Reader package.
Users can control logging output through standard Python logging facilities.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

PACKAGE_LOGGER = "wrf_reader"


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    format_string: Optional[str] = None,
    date_format: Optional[str] = None
) -> logging.Logger:
    """
    Configure logging for WRF Reader.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
               Can be string or logging constant
        log_file: Optional path to log file
        format_string: Custom format string for log messages
        date_format: Custom date format string

    Returns:
        logging.Logger: Configured logger instance

    Examples:
        >>> from wrf_reader import setup_logging
        >>> setup_logging(level="DEBUG")            # show skipped variables
        >>> setup_logging(log_file="/tmp/wrf.log")  # also write to a file
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    if format_string is None:
        format_string = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    if date_format is None:
        date_format = '%Y-%m-%d %H:%M:%S'

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    # Clear existing handlers to avoid duplicates
    logger.handlers.clear()

    formatter = logging.Formatter(format_string, datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_path}")

    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    Args:
        name: Logger name relative to the package (e.g. "io.collection")

    Returns:
        logging.Logger: Logger instance
    """
    return logging.getLogger(f'{PACKAGE_LOGGER}.{name}')


# No output by default; only warnings and errors once a handler is attached
_default_logger = logging.getLogger(PACKAGE_LOGGER)
if not _default_logger.handlers:
    _default_logger.addHandler(logging.NullHandler())
_default_logger.setLevel(logging.WARNING)


def set_log_level(level: Union[int, str]) -> None:
    """
    Quickly change the logging level for wrf_reader.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Examples:
        >>> from wrf_reader import set_log_level
        >>> set_log_level('DEBUG')
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    for handler in logger.handlers:
        handler.setLevel(level)
