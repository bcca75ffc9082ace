"""Driver layer - container runtime abstraction."""

from roomkeeper.drivers.base import RoomDriver, RoomEventStream
from roomkeeper.drivers.docker import DockerRoomDriver

__all__ = [
    "DockerRoomDriver",
    "RoomDriver",
    "RoomEventStream",
]
