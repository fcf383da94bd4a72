"""Structured logging setup for rostersync.

All modules log through structlog with an event name plus key/value context::

    logger = get_logger(__name__)
    logger.info("sync.cycle_complete", guild_id="123", added=2)

``configure_logging`` is called once by the command surfaces. Until then
structlog's defaults apply, which is what the tests rely on.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor


def configure_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure the structlog processor chain.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR).
        json_format: Render one JSON object per line instead of console output.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]
    if json_format:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )


def _stderr_logger(*args: Any) -> structlog.PrintLogger:
    # Resolve sys.stderr per logger so redirected streams are honoured.
    return structlog.PrintLogger(file=sys.stderr)


def get_logger(name: str | None = None) -> Any:
    """Return a structlog logger, usually called with ``__name__``."""
    return structlog.get_logger(name)


def bound_guild(guild_id: str):
    """Bind ``guild_id`` to every log line emitted inside the block."""
    return structlog.contextvars.bound_contextvars(guild_id=guild_id)
