"""structlog configuration.

Library modules only call ``structlog.get_logger()``; the host application
calls :func:`setup_logging` once at startup to choose level and rendering.
All output goes to stderr.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from jumpstart_cache.config import LoggingSettings


def _stderr_logger(*args: object) -> structlog.PrintLogger:
    # sys.stderr is looked up per logger, not once at configure time
    return structlog.PrintLogger(file=sys.stderr)


def setup_logging(settings: LoggingSettings) -> None:
    renderer: structlog.types.Processor
    if settings.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelNamesMapping()[settings.level]
        ),
        logger_factory=_stderr_logger,
    )
