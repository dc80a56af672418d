"""Common utilities and shared functionality."""

from .context import Context, timeout_context
from .context_config import DEFAULT_CLOSE_TIMEOUT, TunnelOptions
from .exceptions import (
    AcceptFailed,
    CloseFailed,
    CloseTimeout,
    ContextCancelled,
    ContextError,
    DeadlineExceeded,
    ServeTerminated,
    TunnelClosedError,
    TunnelError,
)
from .logging import get_logger, setup_logging, tunnel_logger

__all__ = [
    # Context
    "Context",
    "timeout_context",
    # Configuration
    "TunnelOptions",
    "DEFAULT_CLOSE_TIMEOUT",
    # Exceptions
    "TunnelError",
    "AcceptFailed",
    "CloseFailed",
    "CloseTimeout",
    "ServeTerminated",
    "TunnelClosedError",
    "ContextError",
    "ContextCancelled",
    "DeadlineExceeded",
    # Logging
    "get_logger",
    "setup_logging",
    "tunnel_logger",
]
