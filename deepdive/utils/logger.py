"""Logging utility."""

import logging
import os
from typing import Optional


APP_LOGGER_NAME = "deepdive"

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logger(
    name: str,
    log_level: str = "INFO",
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Set up a logger with console and optional file output.

    Args:
        name: Logger name
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    level = getattr(logging, log_level.upper(), logging.INFO)
    logger.setLevel(level)

    # Handlers are attached once per logger name
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


# Application logger instance
app_logger: Optional[logging.Logger] = None


def init_app_logger(settings) -> logging.Logger:
    """
    Initialize the application logger with settings.

    Args:
        settings: Application settings instance

    Returns:
        Configured application logger
    """
    global app_logger

    app_logger = setup_logger(
        name=APP_LOGGER_NAME,
        log_level=settings.log_level,
        log_file=settings.log_file
    )

    return app_logger


def get_app_logger() -> logging.Logger:
    """Get the application logger, falling back to a console-only logger."""
    if app_logger is None:
        return setup_logger(APP_LOGGER_NAME)

    return app_logger
