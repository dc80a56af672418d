"""Socket-like wrapper for connections accepted through a tunnel."""

from types import TracebackType
from typing import Any, Literal

from .interfaces import ProxyEnvelope


class ProxiedConnection:
    """A raw stream accepted through a tunnel, plus its proxy envelope.

    Every socket attribute (``recv``, ``sendall``, ``makefile``, ``shutdown``,
    ``close``, ``settimeout``, ...) is delegated to the raw stream, so the
    wrapper can be handed to any code that expects an accepted socket. The
    payload is never read or written here.
    """

    def __init__(self, proxy: ProxyEnvelope):
        self._proxy = proxy
        self._raw = proxy.conn

    @property
    def proxy_conn(self) -> ProxyEnvelope:
        """The proxy envelope this connection arrived with."""
        return self._proxy

    @property
    def raw(self) -> Any:
        return self._raw

    @property
    def remote_address(self) -> tuple[str, int]:
        """Peer address of the raw stream, ``("", 0)`` when it has none."""
        try:
            peer = self._raw.getpeername()
        except (AttributeError, OSError):
            return ("", 0)
        if isinstance(peer, tuple) and len(peer) >= 2:
            return (str(peer[0]), int(peer[1]))
        return (str(peer or ""), 0)

    def __getattr__(self, name: str) -> Any:
        # Only reached for attributes not defined on the wrapper itself
        if name in ("_raw", "_proxy"):
            raise AttributeError(name)
        return getattr(self._raw, name)

    def __enter__(self) -> "ProxiedConnection":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> Literal[False]:
        self._raw.close()
        return False

    def __repr__(self) -> str:
        return f"ProxiedConnection(raw={self._raw!r})"
