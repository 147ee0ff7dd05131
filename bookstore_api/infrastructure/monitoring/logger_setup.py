"""Centralized logging configuration for the test-client core.

Sets up standard Python logging with a console handler and an optional
file handler. ``setup_logging_from_config`` applies the ``logging.enabled``
and ``log.level`` settings.
"""

import logging
import sys
from typing import Optional

from bookstore_api.domain.interfaces.config import ConfigurationProvider

DEFAULT_LOG_LEVEL = logging.INFO
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_LOG_FILE = None


def setup_logging(
    log_level: int = DEFAULT_LOG_LEVEL,
    log_format: str = DEFAULT_LOG_FORMAT,
    log_file: Optional[str] = DEFAULT_LOG_FILE
) -> None:
    """Configures the root logger.

    Args:
        log_level: The minimum logging level (e.g., logging.DEBUG, logging.INFO).
        log_format: The format string for log messages.
        log_file: Optional path to a file for logging output.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
            logging.info(f"Logging to file: {log_file}")
        except OSError as e:
            logging.error(f"Failed to set up file logging to {log_file}: {e}", exc_info=True)

    logging.info(f"Logging configured. Level={logging.getLevelName(log_level)}")


def resolve_log_level(config: ConfigurationProvider) -> int:
    """Maps ``logging.enabled`` / ``log.level`` onto a logging level.

    Disabled logging keeps warnings and errors only. Unknown level names
    fall back to INFO.
    """
    if not config.get_bool("logging.enabled", True):
        return logging.WARNING
    level_name = config.get_string("log.level", "INFO").upper()
    if level_name == "WARN":
        level_name = "WARNING"
    level = logging.getLevelName(level_name)
    return level if isinstance(level, int) else DEFAULT_LOG_LEVEL


def setup_logging_from_config(config: ConfigurationProvider) -> None:
    """Configures logging from resolved settings."""
    setup_logging(
        log_level=resolve_log_level(config),
        log_format=config.get_string("log.format", DEFAULT_LOG_FORMAT),
        log_file=config.get("log.file"),
    )
