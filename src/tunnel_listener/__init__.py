"""Tunnel Listener - serve existing socket and HTTP code over session tunnels."""

from .common.context import Context, timeout_context
from .common.context_config import TunnelOptions
from .common.exceptions import (
    AcceptFailed,
    CloseFailed,
    CloseTimeout,
    ContextCancelled,
    DeadlineExceeded,
    ServeTerminated,
    TunnelClosedError,
    TunnelError,
)
from .common.logging import get_logger, setup_logging
from .tunnel import (
    CONTEXT_ENVIRON_KEY,
    TUNNEL_ENVIRON_KEY,
    BindConfig,
    HTTPTunnel,
    Listener,
    ProxiedConnection,
    ProxyConn,
    ProxyHeader,
    Session,
    Tunnel,
    TunnelAddress,
    TunnelClient,
    TunnelHTTPServer,
    TunnelState,
    serve,
)

# Package level logger
logger = get_logger(__name__)

__version__ = "0.1.0"


__all__ = [
    # Tunnel listener
    "Tunnel",
    "ProxiedConnection",
    "TunnelState",
    # HTTP serving
    "serve",
    "TunnelHTTPServer",
    "CONTEXT_ENVIRON_KEY",
    "TUNNEL_ENVIRON_KEY",
    # Interfaces
    "Listener",
    "HTTPTunnel",
    "TunnelClient",
    "Session",
    # Models
    "BindConfig",
    "ProxyConn",
    "ProxyHeader",
    "TunnelAddress",
    # Context and configuration
    "Context",
    "timeout_context",
    "TunnelOptions",
    # Exceptions
    "TunnelError",
    "AcceptFailed",
    "CloseFailed",
    "CloseTimeout",
    "ServeTerminated",
    "TunnelClosedError",
    "ContextCancelled",
    "DeadlineExceeded",
    # Utilities
    "get_logger",
    "setup_logging",
]
