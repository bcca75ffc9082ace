"""Data models."""

from roomkeeper.models.room import (
    DEFAULT_API_VERSION,
    BrowserPolicy,
    PortAllocation,
    PortMode,
    RoomDescriptor,
    RoomEvent,
    RoomEventAction,
    RoomSnapshot,
)

__all__ = [
    "DEFAULT_API_VERSION",
    "BrowserPolicy",
    "PortAllocation",
    "PortMode",
    "RoomDescriptor",
    "RoomEvent",
    "RoomEventAction",
    "RoomSnapshot",
]
