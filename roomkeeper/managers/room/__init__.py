from roomkeeper.managers.room.room import RoomEntry, RoomManager

__all__ = ["RoomEntry", "RoomManager"]
