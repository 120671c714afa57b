"""Loggers for the probe package.

Every ``rxprobe`` logger writes to stderr. Setting ``RXPROBE_LOG_DIR`` adds
one shared rotating file, ``rxprobe.log``, so a whole test session's probe
activity can be read back in order.
"""

import logging
from functools import cache
from logging.handlers import RotatingFileHandler

from rxprobe.utilities.env import Configuration

LOG_FORMAT = "%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILENAME = "rxprobe.log"
MAX_LOG_BYTES = 10 * 1024 * 1024  # 10 MiB


@cache
def _session_handlers() -> tuple[logging.Handler, ...]:
    formatter = logging.Formatter(LOG_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler()]

    log_dir = Configuration.log_dir()
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(log_dir / LOG_FILENAME, maxBytes=MAX_LOG_BYTES, backupCount=1)
        )

    for handler in handlers:
        handler.setFormatter(formatter)
    return tuple(handlers)


def reset_handlers() -> None:
    """Close the shared handlers so the next logger rereads the log settings."""

    for handler in _session_handlers():
        handler.close()
    _session_handlers.cache_clear()


def get_logger(name: str) -> logging.Logger:
    """Return ``name``'s logger wired to the shared probe handlers.

    Delivery threads name each record's ``threadName``, which is how
    interleaved producer and test-thread activity is told apart.
    """

    logger = logging.getLogger(name)
    logger.setLevel(Configuration.log_level())
    if not logger.handlers:
        for handler in _session_handlers():
            logger.addHandler(handler)
        logger.propagate = False
    return logger
