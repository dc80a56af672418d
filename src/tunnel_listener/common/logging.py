"""Structured logging for tunnel listeners, built on structlog."""

import logging
import sys
from typing import Any

import structlog
from structlog.typing import Processor

PACKAGE_LOGGER = "tunnel_listener"


def setup_logging(
    level: str = "INFO",
    json_format: bool = False,
    log_file: str | None = None,
    logger_name: str = PACKAGE_LOGGER,
) -> None:
    """Configure structured logging for tunnel listener output.

    Handlers are attached to ``logger_name`` only, so an application that
    embeds tunnels keeps control over its own root logger. Pass ``""`` to
    configure the root logger instead.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: If True, output JSON formatted logs
        log_file: Optional file path to write logs to
        logger_name: Stdlib logger that receives the handlers
    """
    log_level = getattr(logging, level.upper())

    target = logging.getLogger(logger_name)
    target.handlers = []
    target.setLevel(log_level)
    if logger_name:
        target.propagate = False

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    target.addHandler(console_handler)

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]
    processors.append(
        structlog.processors.JSONRenderer()
        if json_format
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        target.addHandler(file_handler)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger for ``name`` (usually ``__name__``)."""
    return structlog.get_logger(name)  # type: ignore[no-any-return]


def tunnel_logger(name: str, tunnel_id: str, **extra: Any) -> structlog.stdlib.BoundLogger:
    """Get a logger with the tunnel id bound to every event."""
    return get_logger(name).bind(tunnel_id=tunnel_id, **extra)
