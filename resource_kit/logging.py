"""Structured logging setup utilities."""

from __future__ import annotations

import logging
from typing import Iterable

import structlog

from resource_kit.config import get_settings


def configure_logging(
    handlers: Iterable[logging.Handler] | None = None,
    *,
    level: str | None = None,
    json: bool | None = None,
) -> None:
    """Configure stdlib logging and structlog, JSON output unless disabled in settings."""

    settings = get_settings()
    if handlers is None:
        handlers = [logging.StreamHandler()]
    if level is None:
        level = settings.log_level
    if json is None:
        json = settings.json_logs

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        handlers=list(handlers),
        format="%(message)s",
        force=True,
    )

    renderer = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
