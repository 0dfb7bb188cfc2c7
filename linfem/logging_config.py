"""
Logging Configuration
Sets up the package logger for linfem.
"""
import logging
import sys
from typing import Optional

from .config import CONFIG


def setup_logging(level: Optional[int] = None, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configures the logger for the 'linfem' namespace.

    Args:
        level: Logging level (defaults to CONFIG.log_level)
        log_file: Optional path to save logs to a file.

    Returns:
        The configured 'linfem' logger.
    """
    if level is None:
        level = CONFIG.log_level

    logger = logging.getLogger("linfem")
    logger.setLevel(level)

    # Avoid duplicate handlers when called more than once
    if logger.hasHandlers():
        logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)

    # Format: Time - Module - Level - Message
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.info("Logging initialized.")
    return logger
