import logging
import os
import sys
from datetime import datetime
from typing import Optional


DEFAULT_LOG_DIR = "logs"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _level_from_env(default: int) -> int:
    level_name = os.getenv("RESTSUITE_LOG_LEVEL")
    if not level_name:
        return default
    level = logging.getLevelName(level_name.upper())
    return level if isinstance(level, int) else default


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """
    Get a logger instance with the specified name and log level.

    The level can be overridden with RESTSUITE_LOG_LEVEL and the log directory
    with RESTSUITE_LOG_DIR (an empty value disables the file handler).

    Args:
        name: The name of the logger (typically __name__)
        level: The logging level (default: INFO)

    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)

    # Avoid adding handlers if they already exist
    if logger.handlers:
        return logger

    level = _level_from_env(level)
    logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)

    log_dir = os.getenv("RESTSUITE_LOG_DIR", DEFAULT_LOG_DIR)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d")
        log_file = os.path.join(log_dir, f"restsuite_{timestamp}.log")
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


def set_log_level(level: int, prefix: Optional[str] = "restsuite") -> None:
    """Switch every already-created package logger (and its handlers) to `level`."""
    for name, candidate in logging.Logger.manager.loggerDict.items():
        if not isinstance(candidate, logging.Logger):
            continue
        if prefix and not name.startswith(prefix):
            continue
        candidate.setLevel(level)
        for handler in candidate.handlers:
            handler.setLevel(level)
