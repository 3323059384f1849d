"""Logging setup for the Venus Dialogics site.

Library modules only call `get_logger()`; handlers are attached once, by the
Streamlit entry point, through `setup_logger` or `setup_logger_from_env`.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from dialogics.utils import config

LOGGER_NAME = "dialogics"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logger(
    name: str = LOGGER_NAME,
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Configure and return a logger. Calling it again for a configured logger
    returns it untouched, so Streamlit reruns do not stack handlers.

    Args:
        name: Logger name.
        level: Logging level.
        log_file: Optional path to log file. If None, logs to stderr only.
    """
    log = logging.getLogger(name)
    if log.handlers:
        return log

    log.setLevel(level)
    fmt = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(fmt)
    log.addHandler(stream)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setFormatter(fmt)
        log.addHandler(fh)

    return log


def setup_logger_from_env() -> logging.Logger:
    """Configure the application logger from LOG_LEVEL / LOG_FILE."""
    level = logging.getLevelName(config.log_level())
    if not isinstance(level, int):
        level = logging.INFO
    return setup_logger(LOGGER_NAME, level=level, log_file=config.log_file())


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """Return the application logger (or a child of it, e.g. "dialogics.gateway")."""
    return logging.getLogger(name)
