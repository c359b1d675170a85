"""Structured logging for the WhisperLive client.

Modules only ask for loggers; nothing here runs at import time. Handlers and
levels belong to the host application, so the client leaves the logging
setup alone unless ``configure_logging`` is called (the ``whisperlive`` CLI
does). Two formats:
- console: human-readable (default)
- json: one object per line
"""

from __future__ import annotations

import logging
import os

import structlog

# Name of the root handler installed by configure_logging.
HANDLER_NAME = "whisperlive"


def configure_logging(
    log_format: str | None = None,
    level: str | None = None,
) -> None:
    """Route structlog through stdlib logging with a stderr handler.

    Calling it again replaces the handler it installed earlier. Handlers
    added by anyone else are kept.

    Args:
        log_format: "json" or "console". Default via WHISPERLIVE_LOG_FORMAT env or "console".
        level: Log level (DEBUG, INFO, WARNING, ERROR). Default via WHISPERLIVE_LOG_LEVEL
            env or "INFO".
    """
    resolved_format = log_format or os.environ.get("WHISPERLIVE_LOG_FORMAT", "console")
    resolved_level = level or os.environ.get("WHISPERLIVE_LOG_LEVEL", "INFO")

    if resolved_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if existing.get_name() == HANDLER_NAME:
            root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, resolved_level.upper(), logging.INFO))


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Return a lazy logger bound to ``component``.

    The logger resolves the structlog configuration on first use, so it is
    safe to create at module level.
    """
    return structlog.get_logger(component=component)  # type: ignore[no-any-return]
