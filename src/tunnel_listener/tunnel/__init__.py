"""Tunnel listener adapter and HTTP serving."""

from .connection import ProxiedConnection
from .interfaces import HTTPTunnel, Listener, ProxyEnvelope, Session, TunnelClient
from .models import BindConfig, ProxyConn, ProxyHeader, TunnelAddress, TunnelState
from .serving import (
    CONTEXT_ENVIRON_KEY,
    TUNNEL_ENVIRON_KEY,
    TunnelHTTPServer,
    TunnelWSGIRequestHandler,
    serve,
)
from .tunnel import Tunnel

__all__ = [
    "Tunnel",
    "ProxiedConnection",
    "TunnelHTTPServer",
    "serve",
    "CONTEXT_ENVIRON_KEY",
    "TUNNEL_ENVIRON_KEY",
    "TunnelWSGIRequestHandler",
    "Listener",
    "HTTPTunnel",
    "TunnelClient",
    "Session",
    "ProxyEnvelope",
    "BindConfig",
    "ProxyConn",
    "ProxyHeader",
    "TunnelAddress",
    "TunnelState",
]
