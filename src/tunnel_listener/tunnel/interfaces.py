"""Protocol interfaces for tunnel listeners and their collaborators."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..common.context import Context
    from .connection import ProxiedConnection
    from .models import BindConfig, TunnelAddress


class ProxyEnvelope(Protocol):
    """An accepted connection as handed out by the tunnel client."""

    conn: Any


class TunnelClient(Protocol):
    """Low-level tunnel handle owned by a session."""

    def accept(self) -> ProxyEnvelope:
        """Block until a proxied connection arrives."""
        ...

    def close(self) -> None:
        """Send the tunnel close message and wait for the acknowledgement."""
        ...

    def addr(self) -> TunnelAddress:
        ...

    def id(self) -> str:
        ...

    def forwards_to(self) -> str:
        ...

    def remote_bind_config(self) -> BindConfig:
        ...


class Session(Protocol):
    """Multiplexed session owning one or more tunnels. Opaque to tunnels."""


@runtime_checkable
class Listener(Protocol):
    """Socket-style listener: accept connections until closed."""

    def accept(self) -> ProxiedConnection:
        ...

    @property
    def address(self) -> TunnelAddress:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class HTTPTunnel(Listener, Protocol):
    """A tunnel listener that can serve HTTP directly."""

    @property
    def id(self) -> str:
        ...

    @property
    def url(self) -> str:
        ...

    @property
    def session(self) -> Session | None:
        ...

    def close_with_context(self, ctx: Context) -> None:
        ...

    def serve(self, ctx: Context, handler: Any) -> None:
        ...
