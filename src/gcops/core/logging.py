"""Logging setup for gcops (structlog on top of the standard library)."""

from __future__ import annotations

import logging
import sys

import structlog

SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
]


def configure_logging(level: str = "WARNING") -> None:
    """
    Configure structlog and the root `gcops` logger.

    Log lines go to stderr so they never mix with table output on stdout.
    Calling this more than once only updates the level.
    """
    structlog.configure(
        processors=SHARED_PROCESSORS
        + [
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger("gcops")
    root.setLevel(level.upper())
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
                foreign_pre_chain=SHARED_PROCESSORS,
            )
        )
        root.addHandler(handler)
