"""Shared pytest fixtures for tunnel listener tests."""

import queue
import socket
import threading
import time

import pytest

from tunnel_listener.tunnel.models import BindConfig, ProxyConn, ProxyHeader, TunnelAddress


class FakeSession:
    """Stand-in for the session that owns a tunnel."""


class FakeTunnelClient:
    """In-memory tunnel client.

    Items pushed with ``push`` are handed out by ``accept`` in order;
    exceptions are raised instead of returned. ``close`` waits for
    ``release_close`` (set by default) and then unblocks pending accepts.
    """

    def __init__(
        self,
        tunnel_id: str = "tn_2kZ9c1",
        forwards_to: str = "localhost:8080",
        bind_config: BindConfig | None = None,
    ):
        self.tunnel_id = tunnel_id
        self.forwarding = forwards_to
        self.bind_config = bind_config or BindConfig(
            url="https://abc123.tunnel.example.com", proto="https", metadata="team=web"
        )
        self.close_error: Exception | None = None
        self.close_calls = 0
        self.accept_calls = 0
        self.release_close = threading.Event()
        self.release_close.set()
        self._accepts: queue.Queue = queue.Queue()

    def push(self, item) -> None:
        self._accepts.put(item)

    def accept(self):
        self.accept_calls += 1
        item = self._accepts.get()
        if isinstance(item, BaseException):
            raise item
        return item

    def close(self) -> None:
        self.close_calls += 1
        self.release_close.wait()
        if self.close_error is not None:
            raise self.close_error
        self._accepts.put(ConnectionAbortedError("tunnel closed by session"))

    def addr(self) -> TunnelAddress:
        return TunnelAddress(network="tcp", address="abc123.tunnel.example.com:443")

    def id(self) -> str:
        return self.tunnel_id

    def forwards_to(self) -> str:
        return self.forwarding

    def remote_bind_config(self) -> BindConfig:
        return self.bind_config


@pytest.fixture
def make_client():
    """Factory for fake tunnel clients."""
    return FakeTunnelClient


@pytest.fixture
def fake_client():
    return FakeTunnelClient()


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def tunnel(fake_client, session):
    from tunnel_listener.tunnel.tunnel import Tunnel  # noqa: PLC0415

    return Tunnel(fake_client, session)


@pytest.fixture
def socket_pair():
    """Connected (server_side, client_side) sockets, closed after the test."""
    server_side, client_side = socket.socketpair()
    yield server_side, client_side
    server_side.close()
    client_side.close()


@pytest.fixture
def proxy_conn(socket_pair):
    server_side, _ = socket_pair
    return ProxyConn(
        conn=server_side,
        header=ProxyHeader(id="conn_1", client_addr="203.0.113.7:51234", proto="https"),
    )


@pytest.fixture
def wait_for():
    """Poll ``predicate`` until it holds or ``timeout`` seconds pass."""

    def _wait_for(predicate, timeout: float = 2.0) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(0.01)
        return predicate()

    return _wait_for


@pytest.fixture
def make_session():
    """Factory for fake sessions."""
    return FakeSession
