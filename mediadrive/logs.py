# mediadrive/logs.py - Logging setup for the MediaDrive CLI
"""
Rotating log file on the drive plus a terse stderr handler.

All modules log through named children of the ``MediaDrive`` logger
(``MediaDrive.drives``, ``MediaDrive.groups``, ``MediaDrive.wizard``, ...), so
every line carries level + context (logger name) + message.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from mediadrive.constants import FileNames
from mediadrive.limits import Limits

ROOT_LOGGER_NAME = "MediaDrive"

FILE_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"
STDERR_FORMAT = "%(levelname)s: %(message)s"


def get_logger(area: str) -> logging.Logger:
    """Return the ``MediaDrive.<area>`` logger."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{area}")


def setup_logging(
    log_dir: Optional[Path] = None,
    level: Union[int, str] = logging.INFO,
    stderr_level: Union[int, str] = logging.WARNING,
) -> logging.Logger:
    """
    Set up rotating log file and stderr logging.

    Args:
        log_dir: Directory for the rotating log file (None = stderr only)
        level: Level for the file handler and the MediaDrive logger
        stderr_level: Level for the stderr handler

    Returns:
        Configured MediaDrive root logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)

    # Re-running setup (tests, repeated main() calls) must not stack handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if log_dir is not None:
        try:
            log_dir = Path(log_dir)
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                str(log_dir / FileNames.LOG_FILE),
                maxBytes=Limits.LOG_MAX_BYTES,
                backupCount=Limits.LOG_BACKUP_COUNT,
                encoding="utf-8",
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATEFMT))
            logger.addHandler(file_handler)
        except OSError as e:
            # Read-only drive: keep going with stderr only
            print(f"[!] Could not open log file in {log_dir}: {e}", file=sys.stderr)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(stderr_level)
    stderr_handler.setFormatter(logging.Formatter(STDERR_FORMAT))
    logger.addHandler(stderr_handler)

    logger.propagate = False
    return logger
