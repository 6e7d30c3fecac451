"""
Logging setup for mentor-match.

Library modules log through ``logging.getLogger(__name__)``; the CLI calls
``setup_logging`` once to attach a console handler and, optionally, a dated
log file.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = "INFO",
    log_dir: Optional[Path] = None,
    name: str = "mentor_match",
) -> logging.Logger:
    """
    Configure the root logger.

    Args:
        level: Console log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: If given, also write everything (DEBUG and up) to
            ``<log_dir>/<name>_YYYYMMDD.log``
        name: Prefix for the log file name

    Returns:
        The configured root logger
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if log_dir is not None else getattr(logging, level.upper()))
    root.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper()))
    console_handler.setFormatter(logging.Formatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(console_handler)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"{name}_{datetime.now().strftime('%Y%m%d')}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(file_handler)

    return root
