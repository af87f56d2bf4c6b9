"""Package logging setup.

Everything logs under the ``sparkfinance`` logger tree. Console output goes
to stderr so command results on stdout stay machine-readable.
"""

from __future__ import annotations

import logging
from pathlib import Path

LOGGER_NAME = "sparkfinance"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
# Connection-pool chatter from requests is only useful when debugging.
NOISY_LOGGERS = ("urllib3",)


def _file_handlers(logger: logging.Logger) -> dict[Path, logging.FileHandler]:
    return {
        Path(handler.baseFilename).resolve(): handler
        for handler in logger.handlers
        if isinstance(handler, logging.FileHandler)
    }


def setup_logger(log_level: str = "INFO", log_file: str | None = None) -> logging.Logger:
    """Configure and return the package logger.

    Safe to call more than once: later calls change the level and attach a
    file handler for a log file not seen before, without duplicating the
    console handler.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    has_console = any(
        type(handler) is logging.StreamHandler for handler in logger.handlers
    )
    if not has_console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        path = Path(log_file)
        if path.resolve() not in _file_handlers(logger):
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(path, encoding="utf-8")
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)

    return logger
