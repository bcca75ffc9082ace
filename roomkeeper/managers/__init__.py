"""Manager layer - room access through labels."""

from roomkeeper.managers.room import RoomEntry, RoomManager

__all__ = ["RoomEntry", "RoomManager"]
