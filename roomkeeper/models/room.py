"""Room data model.

A room is one container. Everything roomkeeper knows about it is decoded from
that container's labels on demand; none of these objects are cached.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

PORT_MIN = 0
PORT_MAX = 65535

# Rooms created before label versioning carry no api_version label.
DEFAULT_API_VERSION = 2


class PortMode(str, Enum):
    """How a room exposes its WebRTC ports."""

    MUX = "mux"  # single multiplexed port
    RANGE = "range"  # ephemeral port range (epr)


@dataclass(frozen=True)
class PortAllocation:
    """Port allocation of a room.

    MUX is a degenerate range (min == max). Build instances with
    ``PortAllocation.mux()`` / ``PortAllocation.range()``.
    """

    mode: PortMode
    min: int
    max: int

    def __post_init__(self) -> None:
        for bound in (self.min, self.max):
            if not PORT_MIN <= bound <= PORT_MAX:
                raise ValueError(f"port {bound} out of range {PORT_MIN}-{PORT_MAX}")
        if self.min > self.max:
            raise ValueError(f"invalid port range {self.min}-{self.max}")
        if self.mode is PortMode.MUX and self.min != self.max:
            raise ValueError("mux allocation must use a single port")

    @classmethod
    def mux(cls, port: int) -> PortAllocation:
        return cls(mode=PortMode.MUX, min=port, max=port)

    @classmethod
    def range(cls, min_port: int, max_port: int) -> PortAllocation:
        return cls(mode=PortMode.RANGE, min=min_port, max=max_port)

    @property
    def is_mux(self) -> bool:
        return self.mode is PortMode.MUX


@dataclass(frozen=True)
class BrowserPolicy:
    """Policy document applied to the room's browser."""

    type: str
    path: str


@dataclass(frozen=True)
class RoomDescriptor:
    """Full decoded state of one room."""

    name: str
    url: str
    cotester_url: str
    ports: PortAllocation
    image: str
    deadline: datetime

    # Session tracker coordinates
    api_endpoint: str
    session_id: str
    api_key: str

    api_version: int = DEFAULT_API_VERSION
    browser_policy: BrowserPolicy | None = None
    user_defined: dict[str, str] = field(default_factory=dict)


@dataclass
class RoomSnapshot:
    """A room container as listed by the driver."""

    id: str
    labels: dict[str, str]
    name: str = ""
    state: str = "unknown"


class RoomEventAction(str, Enum):
    STARTED = "started"
    STOPPED = "stopped"
    DESTROYED = "destroyed"
    OTHER = "other"


@dataclass
class RoomEvent:
    """Container lifecycle transition of a room."""

    id: str
    action: RoomEventAction
    labels: dict[str, str] = field(default_factory=dict)
