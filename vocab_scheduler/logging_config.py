"""structlog setup shared by the word store, review service and CLI."""

from __future__ import annotations

import logging

import structlog
from structlog import contextvars as structlog_contextvars


def configure_logging(level: str = "INFO", *, json: bool = True) -> None:
    """Configure stdlib logging and structlog for the application.

    Output is one event per line: JSON by default, or the structlog console
    renderer for interactive use.
    """

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        handlers=[logging.StreamHandler()],
        force=True,
    )
    renderer = (
        structlog.processors.JSONRenderer()
        if json
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog_contextvars.merge_contextvars,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
    )
