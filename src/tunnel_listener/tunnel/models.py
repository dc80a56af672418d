"""Tunnel models using Pydantic for type safety and validation."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TunnelState(str, Enum):
    """Tunnel lifecycle state. CLOSED is terminal."""

    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class BindConfig(BaseModel):
    """Remote bind configuration reported by the tunnel client.

    A tunnel is either URL-addressed (``url`` and ``proto`` set) or
    label-addressed (``labels`` set), never both.
    """

    model_config = ConfigDict(validate_assignment=True)

    url: str = Field(default="", description="Public URL, empty for labeled tunnels")
    proto: str = Field(default="", description="Protocol, empty for labeled tunnels")
    metadata: str = Field(default="", description="Opaque caller-supplied metadata")
    labels: dict[str, str] = Field(
        default_factory=dict, description="Routing labels, empty for URL tunnels"
    )

    @model_validator(mode="after")
    def check_addressing(self) -> "BindConfig":
        """Reject configurations that are both URL- and label-addressed."""
        if self.labels and (self.url or self.proto):
            raise ValueError(
                "Labeled tunnels cannot also have a url or proto "
                f"(url={self.url!r}, proto={self.proto!r})"
            )
        return self

    @property
    def is_labeled(self) -> bool:
        return bool(self.labels)


class TunnelAddress(BaseModel):
    """Address advertised by a tunnel listener."""

    model_config = ConfigDict(frozen=True)

    network: str = Field(default="tcp", description="Network name, e.g. tcp")
    address: str = Field(description="Address string, e.g. host:port or a URL")

    def __str__(self) -> str:
        return self.address


class ProxyHeader(BaseModel):
    """Per-connection envelope attached by the tunnel protocol."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default="", description="Connection identifier")
    client_addr: str = Field(default="", description="Originating client address")
    proto: str = Field(default="", description="Protocol of the originating connection")
    edge_type: str = Field(default="", description="Kind of edge that accepted the connection")
    passthrough_tls: bool = Field(default=False, description="TLS was not terminated remotely")


class ProxyConn(BaseModel):
    """An accepted raw stream together with its proxy envelope."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    conn: Any = Field(description="Raw duplex stream (socket-like)")
    header: ProxyHeader = Field(default_factory=ProxyHeader)
