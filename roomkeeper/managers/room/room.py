"""Room manager - read and prepare rooms through their labels.

There is no database: every read goes to the driver and decodes the live
label map, and the descriptor is discarded afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from roomkeeper.errors import InvalidLabelKeyError, LabelDecodeError
from roomkeeper.labels.keys import check_label_key

if TYPE_CHECKING:
    from roomkeeper.drivers.base import RoomDriver
    from roomkeeper.labels.codec import LabelCodec
    from roomkeeper.models.room import RoomDescriptor, RoomSnapshot

logger = structlog.get_logger()


@dataclass
class RoomEntry:
    """One listed room: its descriptor, or the reason it could not be decoded."""

    snapshot: "RoomSnapshot"
    descriptor: "RoomDescriptor | None" = None
    error: LabelDecodeError | None = None

    @property
    def id(self) -> str:
        return self.snapshot.id

    @property
    def damaged(self) -> bool:
        return self.error is not None


class RoomManager:
    """Manages rooms via their container labels."""

    def __init__(self, driver: "RoomDriver", codec: "LabelCodec") -> None:
        self._driver = driver
        self._codec = codec
        self._log = logger.bind(manager="room")

    async def list_rooms(self, *, labels: dict[str, str] | None = None) -> list[RoomEntry]:
        """List rooms with decoded descriptors.

        Rooms with damaged labels are returned with their decode error
        instead of failing the whole listing.
        """
        entries: list[RoomEntry] = []
        for snapshot in await self._driver.list_rooms(labels=labels):
            try:
                descriptor = self._codec.decode(snapshot.labels)
            except LabelDecodeError as e:
                self._log.warning(
                    "room.damaged_labels",
                    room_id=snapshot.id,
                    key=e.key,
                    error=e.message,
                )
                entries.append(RoomEntry(snapshot=snapshot, error=e))
                continue
            entries.append(RoomEntry(snapshot=snapshot, descriptor=descriptor))
        return entries

    async def get_room(self, room_id: str) -> "RoomDescriptor":
        """Decode one room.

        Raises:
            RoomNotFoundError: No such room
            MissingFieldError / InvalidValueError: Damaged labels
        """
        snapshot = await self._driver.get_room(room_id)
        return self._codec.decode(snapshot.labels)

    def build_labels(self, room: "RoomDescriptor") -> dict[str, str]:
        """Labels for a new room container.

        Raises:
            InvalidLabelKeyError: A user defined key is not a valid label key
        """
        for key in room.user_defined:
            if not check_label_key(key.lower()):
                raise InvalidLabelKeyError(key)

        return self._codec.encode(room)
