"""Logging configuration using loguru.

Everything goes through loguru, including stdlib records from uvicorn, httpx,
websockets and aiortc.  Per-event protocol traces (every event sent or
received on the realtime channel) are tagged ``wire`` and only reach the
sink when ``wire=True``; otherwise a busy voice session drowns the log.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from loguru import Record

_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

# Stdlib loggers whose records are protocol traffic rather than app events.
_WIRE_LIBRARIES = ("websockets", "aiortc", "aioice")
_QUIET_LIBRARIES = ("uvicorn.access", "httpx", "httpcore")

wire = logger.bind(wire=True)
"""Logger for per-event channel traces, e.g. ``wire.debug("-> {}", kind)``."""


def is_wire_record(record: Record) -> bool:
    return bool(record["extra"].get("wire"))


def _accept_all(record: Record) -> bool:
    return True


def _drop_wire(record: Record) -> bool:
    return not is_wire_record(record)


class _InterceptHandler(logging.Handler):
    """Bridge stdlib records into loguru, tagging protocol libraries as wire."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame = logging.currentframe()
        depth = 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        target = wire if record.name.startswith(_WIRE_LIBRARIES) else logger
        target.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "INFO", *, serialize: bool = False, show_wire: bool = False) -> None:
    """Configure loguru as the sole logging sink.

    ``serialize=True`` emits one JSON record per line.  ``show_wire=True``
    keeps the channel traces and lets websockets/aiortc log below WARNING.
    """
    level = level.upper()

    logger.remove()
    record_filter = _accept_all if show_wire else _drop_wire
    if serialize:
        logger.add(sys.stderr, level=level, serialize=True, filter=record_filter)
    else:
        logger.add(sys.stderr, level=level, format=_FORMAT, filter=record_filter)

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)

    quiet = _QUIET_LIBRARIES if show_wire else _QUIET_LIBRARIES + _WIRE_LIBRARIES
    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.info("Logging initialised (level={}, serialize={}, wire={})", level, serialize, show_wire)
