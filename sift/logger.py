"""
Logging configuration for sift.
"""

import logging
import sys
from typing import Optional, Union


def setup_logger(
    name: str = "sift",
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Set up and return the package logger.

    Args:
        name: Logger name
        level: Logging level, as an int or a level name such as "DEBUG"
        log_file: Optional file path for logging

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    # Handlers are installed once; later calls only adjust the level
    # (the runners call this again after reading SIFT_LOG_LEVEL).
    if logger.handlers:
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    logger.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_module_logger(module_name: str) -> logging.Logger:
    """
    Get a child logger for a specific module.

    Child loggers (e.g. "sift.content") propagate to the "sift" logger, so
    one call to setup_logger() configures the whole pipeline.

    Args:
        module_name: Name of the module (e.g., 'content', 'parser.html')

    Returns:
        Child logger instance
    """
    return logging.getLogger(f"sift.{module_name}")
