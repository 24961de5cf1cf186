# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Structured logging for the admission engine.

Domain services log through ``logging.getLogger(__name__)`` with %-style
arguments; the engine facade logs through structlog. Both end up in one
stdout handler rendered by structlog, so records from services carry the
context the engine binds for the current call (acting identity, operation).

Rendering is JSON outside development and colored console output in
development or when debug is on.

Example:
    >>> from src.utils.logging import setup_logging, get_logger, bind_context
    >>> setup_logging(get_settings())
    >>> bind_context(actor="registrar-7", operation="enroll")
    >>> get_logger(__name__).info("admission_requested", course="CS101")
"""

import logging
import sys
from typing import TYPE_CHECKING, ContextManager

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from src.core.config.settings import Settings

# Noisy libraries only surface warnings
QUIET_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite", "asyncpg", "asyncio")

_handler: logging.Handler | None = None


def _renderer(settings: "Settings") -> Processor:
    if settings.is_development or settings.debug:
        return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    return structlog.processors.JSONRenderer()


def setup_logging(settings: "Settings") -> None:
    """Configure structlog and route stdlib logging through it.

    Safe to call more than once; the handler installed by the previous call
    is replaced.

    Args:
        settings: Application settings providing log_level, environment and debug.
    """
    global _handler

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            _renderer(settings),
        ],
    )

    root = logging.getLogger()
    if _handler is not None:
        root.removeHandler(_handler)
    _handler = logging.StreamHandler(sys.stdout)
    _handler.setFormatter(formatter)
    root.addHandler(_handler)
    root.setLevel(log_level)

    for logger_name in QUIET_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger for a module."""
    return structlog.get_logger(name)


def bind_context(**kwargs: object) -> None:
    """Bind values to every log record emitted in the current task.

    Values of None are skipped.

    Example:
        >>> bind_context(actor="registrar-7", operation="enroll")
    """
    structlog.contextvars.bind_contextvars(
        **{key: value for key, value in kwargs.items() if value is not None}
    )


def bound_context(**kwargs: object) -> ContextManager[None]:
    """Bind values for the duration of a with-block only.

    On exit the keys are restored to whatever the caller had bound before, so
    context bound outside the block survives. Values of None are skipped.

    Example:
        >>> with bound_context(actor="registrar-7", operation="withdraw"):
        ...     logger.info("withdrawal_requested")
    """
    return structlog.contextvars.bound_contextvars(
        **{key: value for key, value in kwargs.items() if value is not None}
    )


def clear_context() -> None:
    """Drop everything bound with bind_context in the current task."""
    structlog.contextvars.clear_contextvars()
