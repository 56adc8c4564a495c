"""
Logging Configuration
Sets up the package logger for the application.
"""
import logging
import os
import sys
from typing import Optional, Union

LOG_LEVEL_ENV = "BARCODE_SHEET_LOG_LEVEL"


def level_from_env(default: int = logging.INFO) -> int:
    """Read the level name (DEBUG, INFO, ...) from BARCODE_SHEET_LOG_LEVEL."""
    name = os.environ.get(LOG_LEVEL_ENV, "").strip().upper()
    if not name:
        return default
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else default


def setup_logging(level: Union[int, str] = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configures the logger for the 'barcode_sheet' namespace.

    Args:
        level: Logging level (e.g. logging.DEBUG, or "DEBUG")
        log_file: Optional path to save logs to a file.
    """
    logger = logging.getLogger("barcode_sheet")
    logger.setLevel(level)

    # avoid duplicate output when called twice
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.info("Logging initialized.")
    return logger
