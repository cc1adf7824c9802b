"""
Logging setup for Alpha Finders

Console output plus a rotating main log and a separate error-only log.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Union

from utils.constants import LOG_FILE_BACKUP_COUNT, LOG_FILE_MAX_BYTES, LOG_FORMAT

MAIN_LOG_FILE = "alphafinders.log"
ERROR_LOG_FILE = "errors.log"

# Third-party loggers that are chatty at INFO
QUIET_LOGGERS = ("aiohttp", "web3", "urllib3", "asyncio")


class ColoredFormatter(logging.Formatter):
    """Colored console formatter"""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[41m'   # Red Background
    }
    RESET = '\033[0m'

    def format(self, record):
        original = record.levelname
        color = self.COLORS.get(original, '')
        record.levelname = f"{color}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def setup_logging(level: Union[str, int] = "INFO", log_dir: Union[str, Path] = "logs",
                  console: bool = True) -> logging.Logger:
    """
    Configure the root logger.

    Existing root handlers are replaced, so calling this twice does not
    duplicate output.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(ColoredFormatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        root.addHandler(console_handler)

    main_handler = RotatingFileHandler(
        log_dir / MAIN_LOG_FILE,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    main_handler.setFormatter(formatter)
    root.addHandler(main_handler)

    error_handler = RotatingFileHandler(
        log_dir / ERROR_LOG_FILE,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(formatter)
    root.addHandler(error_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root
