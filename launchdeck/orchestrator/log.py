"""Logging configuration using loguru.

Every record carries the start attempt it belongs to: ``attempt_logger``
binds ``workspace`` and ``generation`` into loguru's ``extra``, and the sink
format prints them, so interleaved output from a superseded attempt and its
successor stays readable.  Records from outside an attempt show ``-``.

Stdlib records (httpx, redis) are forwarded into loguru and carry the same
placeholder fields.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from loguru import Logger

NO_ATTEMPT = {"workspace": "-", "generation": "-"}

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{extra[workspace]}#{extra[generation]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

# Libraries whose INFO output is per-request noise.
QUIET_LOGGERS = ("httpx", "httpcore", "redis")


def attempt_logger(workspace_id: str, generation: int) -> Logger:
    """Logger bound to one start attempt."""
    return logger.bind(workspace=workspace_id, generation=generation)


class _InterceptHandler(logging.Handler):
    """Forward stdlib log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "INFO", *, json_output: bool = False) -> None:
    """Make loguru the only logging sink.

    With ``json_output`` each record is written as one JSON object per line
    (loguru's ``serialize``), with the attempt fields under ``record.extra``.
    """
    level = level.upper()

    logger.remove()
    logger.configure(extra=NO_ATTEMPT)
    if json_output:
        logger.add(sys.stderr, level=level, serialize=True)
    else:
        logger.add(sys.stderr, level=level, format=LOG_FORMAT)

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.debug("Logging initialised (level={}, json={})", level, json_output)
