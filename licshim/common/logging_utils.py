"""
Logging setup shared by the server and the CLI.
"""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


def setup_logger(
    logger: logging.Logger, log_level: int, log_file: Path | None = None
) -> None:
    """
    Attach console (and optionally rotating file) handlers to a logger.

    Calling it again only updates levels; handlers are attached once.

    Args:
        logger: The logger instance to configure
        log_level: The logging level to set
        log_file: Optional path for a size-rotated log file
    """
    logger.setLevel(log_level)
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(log_level)
        return

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
