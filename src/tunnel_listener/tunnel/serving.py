"""HTTP serving over a tunnel listener."""

from __future__ import annotations

import socketserver
import threading
from collections.abc import Callable
from http.server import HTTPServer
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit
from wsgiref.simple_server import WSGIRequestHandler

from ..common.context_config import TunnelOptions
from ..common.exceptions import ServeTerminated, TunnelError
from ..common.logging import get_logger

if TYPE_CHECKING:
    from ..common.context import Context
    from .connection import ProxiedConnection
    from .interfaces import Listener

logger = get_logger(__name__)

CONTEXT_ENVIRON_KEY = "tunnel_listener.context"
TUNNEL_ENVIRON_KEY = "tunnel_listener.tunnel"

DEFAULT_PORTS = {"http": 80, "https": 443}


class TunnelWSGIRequestHandler(WSGIRequestHandler):
    """WSGI request handler that writes access logs through structlog."""

    def log_message(self, format: str, *args: Any) -> None:
        logger.info(
            "HTTP request",
            client_address=self.address_string(),
            message=format % args,
        )


class _TunnelServerBase(HTTPServer):
    """HTTPServer whose listening socket is a tunnel."""

    tunnel: Listener

    def server_close(self) -> None:
        # Runs before ThreadingMixIn joins the handler threads
        try:
            self.tunnel.close()
        except TunnelError as e:
            logger.warning("Tunnel close after serving failed", error=str(e))


class TunnelHTTPServer(socketserver.ThreadingMixIn, _TunnelServerBase):
    """Threaded HTTP server that accepts its connections from a tunnel.

    ``handler`` is either a request handler class (e.g. a
    ``BaseHTTPRequestHandler`` subclass, which finds the base context at
    ``self.server.base_context``) or a WSGI application (which finds it in
    ``environ["tunnel_listener.context"]``).
    """

    def __init__(
        self,
        tunnel: Listener,
        ctx: Context,
        handler: Any,
        options: TunnelOptions | None = None,
    ):
        options = options or TunnelOptions()

        self.application: Callable[..., Any] | None = None
        if isinstance(handler, type) and issubclass(handler, socketserver.BaseRequestHandler):
            handler_class: type[socketserver.BaseRequestHandler] = handler
        elif callable(handler):
            handler_class = TunnelWSGIRequestHandler
            self.application = handler
        else:
            raise TypeError(
                f"handler must be a request handler class or a WSGI application, "
                f"got {type(handler).__name__}"
            )

        # The tunnel already listens; skip TCPServer's socket creation and bind
        socketserver.BaseServer.__init__(self, _server_address(tunnel), handler_class)
        self.tunnel = tunnel
        self.base_context = ctx
        self.server_name, self.server_port = self.server_address
        self.daemon_threads = options.daemon_threads
        self.block_on_close = options.block_on_close
        self._serving = threading.Event()
        self._stopped = threading.Event()
        self._shutdown_requested = False
        self.setup_environ()

    def setup_environ(self) -> None:
        env = self.base_environ = {}
        env["SERVER_NAME"] = self.server_name
        env["GATEWAY_INTERFACE"] = "CGI/1.1"
        env["SERVER_PORT"] = str(self.server_port)
        env["REMOTE_HOST"] = ""
        env["CONTENT_LENGTH"] = ""
        env["SCRIPT_NAME"] = ""
        env[CONTEXT_ENVIRON_KEY] = self.base_context
        env[TUNNEL_ENVIRON_KEY] = self.tunnel

    def get_app(self) -> Callable[..., Any] | None:
        return self.application

    def get_request(self) -> tuple[ProxiedConnection, tuple[str, int]]:
        conn = self.tunnel.accept()
        return conn, conn.remote_address

    def handle_error(self, request: Any, client_address: Any) -> None:
        logger.exception("Error handling tunnel request", client_address=client_address)

    def _handle_one(self) -> None:
        try:
            request, client_address = self.get_request()
        except Exception as e:
            logger.info("Tunnel stopped accepting, serve terminating", error=str(e))
            raise ServeTerminated(e) from e

        if not self.verify_request(request, client_address):
            self.shutdown_request(request)
            return
        try:
            self.process_request(request, client_address)
        except Exception:
            self.handle_error(request, client_address)
            self.shutdown_request(request)

    def serve(self) -> None:
        """Accept and dispatch connections until the tunnel stops accepting.

        Raises:
            ServeTerminated: Always, chained from the accept error
        """
        logger.info("Serving HTTP over tunnel", server_name=self.server_name)
        self._serving.set()
        try:
            while True:
                self._handle_one()
        finally:
            self.server_close()
            self._stopped.set()

    def serve_forever(self, poll_interval: float = 0.5) -> None:
        """Run :meth:`serve` until :meth:`shutdown` is called.

        There is no socket to poll, so ``poll_interval`` is ignored.

        Raises:
            ServeTerminated: If the tunnel stopped accepting without a shutdown
        """
        try:
            self.serve()
        except ServeTerminated:
            if not self._shutdown_requested:
                raise
            logger.info("HTTP server shut down", server_name=self.server_name)

    def handle_request(self) -> None:
        """Accept and dispatch a single connection.

        Blocks until the tunnel hands over a connection; ``timeout`` does
        not apply.

        Raises:
            ServeTerminated: If the tunnel stopped accepting
        """
        self._handle_one()

    def shutdown(self) -> None:
        """Stop :meth:`serve_forever` by closing the tunnel.

        Waits for the serve loop to finish when one is running, unless the
        close failed and the loop is still accepting. Must not be called from
        a request handler thread while ``block_on_close`` is set.
        """
        self._shutdown_requested = True
        try:
            self.tunnel.close()
        except TunnelError as e:
            logger.warning("Tunnel close during shutdown failed", error=str(e))
            self._shutdown_requested = False
            return
        if self._serving.is_set():
            self._stopped.wait()


def _server_address(tunnel: Listener) -> tuple[str, int]:
    parts = urlsplit(getattr(tunnel, "url", "") or "")
    if parts.hostname:
        return parts.hostname, parts.port or DEFAULT_PORTS.get(parts.scheme, 0)
    return str(tunnel.address), 0


def serve(
    tunnel: Listener,
    ctx: Context,
    handler: Any,
    options: TunnelOptions | None = None,
) -> None:
    """Serve HTTP requests over ``tunnel`` with ``handler``.

    Every request sees ``ctx`` as its base context; cancelling it is how
    handlers learn about shutdown. Serving stops when ``accept`` fails,
    normally because the tunnel was closed, and the tunnel is closed on the
    way out.

    Args:
        tunnel: Listener to accept connections from
        ctx: Base context for every request
        handler: Request handler class or WSGI application
        options: Overrides the tunnel's own options

    Raises:
        ServeTerminated: When serving stops; ``inner`` is the accept error
    """
    options = options or getattr(tunnel, "options", None)
    server = TunnelHTTPServer(tunnel, ctx, handler, options)
    server.serve()
