"""Tunnel adapter presenting a session tunnel as a standard listener."""

import threading
import weakref
from concurrent.futures import Future
from types import TracebackType
from typing import Any, Literal, cast

from ..common.context import Context
from ..common.context_config import TunnelOptions
from ..common.exceptions import (
    AcceptFailed,
    CloseFailed,
    CloseTimeout,
    TunnelClosedError,
    TunnelError,
)
from ..common.logging import tunnel_logger
from .connection import ProxiedConnection
from .interfaces import HTTPTunnel, Listener, Session, TunnelClient
from .models import TunnelAddress, TunnelState
from .serving import serve

# Members of the HTTPTunnel protocol
_HTTP_METHODS = ("accept", "close", "close_with_context", "serve")
_HTTP_PROPERTIES = ("address", "id", "url", "session")


class Tunnel(Listener):
    """A live tunnel bound into a session, usable anywhere a listener is.

    ``accept`` blocks until the tunnel client hands over a proxied
    connection. Descriptive accessors read the client's bind configuration
    on every call, so they stay accurate if the client updates it.

    Closing sends a close message over the session and waits for the
    acknowledgement, bounded by a :class:`Context`. A closed tunnel cannot
    be reopened; start a new one from the session instead.
    """

    def __init__(
        self,
        client: TunnelClient,
        session: Session | None = None,
        options: TunnelOptions | None = None,
    ):
        """Wrap a tunnel client.

        Args:
            client: Low-level tunnel handle, exclusively owned by this tunnel
            session: Owning session; only a weak reference is kept
            options: Close and serve settings
        """
        self._client = client
        self._session_ref = weakref.ref(session) if session is not None else None
        self.options = options or TunnelOptions()
        self._state = TunnelState.OPEN
        self._close_future: Future[None] | None = None
        self._lock = threading.Lock()
        self._logger = tunnel_logger(__name__, client.id())

    @property
    def state(self) -> TunnelState:
        return self._state

    def accept(self) -> ProxiedConnection:
        """Wait for the next proxied connection.

        Raises:
            AcceptFailed: If the tunnel client fails or the tunnel is closed
        """
        if self._state is TunnelState.CLOSED:
            closed = TunnelClosedError(f"tunnel {self.id} is closed")
            raise AcceptFailed(closed) from closed

        try:
            proxy = self._client.accept()
        except Exception as e:
            self._logger.debug("Tunnel accept failed", error=str(e))
            raise AcceptFailed(e) from e

        return ProxiedConnection(proxy)

    @property
    def address(self) -> TunnelAddress:
        return self._client.addr()

    def close(self) -> None:
        """Close the tunnel, waiting at most ``options.close_timeout`` seconds."""
        with Context.background().with_timeout(self.options.close_timeout) as ctx:
            self.close_with_context(ctx)

    def close_with_context(self, ctx: Context) -> None:
        """Close the tunnel, waiting until it is acknowledged or ``ctx`` is done.

        The close message keeps going in the background when ``ctx`` ends
        first; its outcome still decides the tunnel state. Concurrent callers
        share one close request. Closing a closed tunnel is a no-op.

        Raises:
            CloseFailed: If the tunnel client reports a close failure
            CloseTimeout: If ``ctx`` is done before the close completes
        """
        with self._lock:
            if self._state is TunnelState.CLOSED:
                return
            start = self._close_future is None
            if start:
                self._state = TunnelState.CLOSING
                self._close_future = Future()
            future = cast(Future[None], self._close_future)

        if start:
            self._logger.info("Closing tunnel")
            threading.Thread(
                target=self._run_close,
                args=(future,),
                name=f"tunnel-close-{self.id}",
                daemon=True,
            ).start()

        wake = threading.Event()

        def wakeup(_: Any) -> None:
            wake.set()

        future.add_done_callback(wakeup)
        ctx.add_done_callback(wakeup)
        try:
            wake.wait()
        finally:
            ctx.remove_done_callback(wakeup)

        if not future.done():
            self._logger.warning("Tunnel close not acknowledged in time", reason=str(ctx.error))
            raise CloseTimeout(f"tunnel {self.id} close not acknowledged: {ctx.error}", ctx.error)

        error = future.exception()
        if error is not None:
            raise CloseFailed(error) from error

    def _run_close(self, future: "Future[None]") -> None:
        try:
            self._client.close()
        except Exception as e:
            self._logger.error("Tunnel close failed", error=str(e))
            with self._lock:
                self._state = TunnelState.OPEN
                self._close_future = None
            future.set_exception(e)
            return

        self._logger.info("Tunnel closed")
        with self._lock:
            self._state = TunnelState.CLOSED
            self._close_future = None
        future.set_result(None)

    @property
    def id(self) -> str:
        return self._client.id()

    @property
    def forwards_to(self) -> str:
        return self._client.forwards_to()

    @property
    def metadata(self) -> str:
        return self._client.remote_bind_config().metadata

    @property
    def proto(self) -> str:
        """Tunnel protocol, empty for labeled tunnels."""
        return self._client.remote_bind_config().proto

    @property
    def url(self) -> str:
        """Public URL, empty for labeled tunnels."""
        return self._client.remote_bind_config().url

    @property
    def labels(self) -> dict[str, str]:
        """Routing labels, empty for URL tunnels."""
        return dict(self._client.remote_bind_config().labels)

    @property
    def session(self) -> Session | None:
        """The session this tunnel was started on, if it is still alive."""
        if self._session_ref is None:
            return None
        return self._session_ref()

    def as_http(self) -> HTTPTunnel:
        """This same tunnel, viewed as one that can serve HTTP.

        The capability check looks at the class only, so no property reaches
        the tunnel client.
        """
        cls = type(self)
        missing = [name for name in _HTTP_METHODS if not callable(getattr(cls, name, None))]
        missing += [name for name in _HTTP_PROPERTIES if not hasattr(cls, name)]
        if missing:
            raise TypeError(f"{cls.__name__} cannot serve HTTP, missing {', '.join(missing)}")
        return cast(HTTPTunnel, self)

    def serve(self, ctx: Context, handler: Any) -> None:
        """Serve HTTP over this tunnel until accepting fails.

        See :func:`tunnel_listener.tunnel.serving.serve`.
        """
        serve(self, ctx, handler)

    def __enter__(self) -> "Tunnel":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is None:
            self.close()
            return False

        # Keep the original exception; a close failure here is only logged
        try:
            self.close()
        except TunnelError as e:
            self._logger.warning("Tunnel close during error cleanup failed", error=str(e))
        return False

    def __repr__(self) -> str:
        return f"Tunnel(id={self.id!r}, state={self._state.value})"
