"""Driver base class - container runtime abstraction.

The driver is the only component that talks to the container runtime. The
worker borrows it for listing rooms, removing rooms, fetching logs and
receiving lifecycle events. It does NOT handle:
- Label decoding (see roomkeeper.labels)
- Deadlines or notifications (see roomkeeper.services.worker)
- Retries
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from roomkeeper.models.room import RoomEvent, RoomSnapshot


@dataclass
class RoomEventStream:
    """A live subscription to room lifecycle events.

    Events and stream errors arrive on separate queues. A stream error does
    not end the subscription; the driver keeps delivering events after it.
    """

    events: asyncio.Queue[RoomEvent] = field(default_factory=asyncio.Queue)
    errors: asyncio.Queue[Exception] = field(default_factory=asyncio.Queue)
    on_close: Callable[[], Awaitable[None]] | None = None

    async def close(self) -> None:
        """Stop the subscription (idempotent)."""
        on_close, self.on_close = self.on_close, None
        if on_close is not None:
            await on_close()


class RoomDriver(ABC):
    """Abstract driver interface for room containers.

    All room containers carry ``{namespace}.instance`` = configured instance
    name; drivers only ever see rooms of their own instance.
    """

    @abstractmethod
    async def list_rooms(
        self, *, labels: dict[str, str] | None = None
    ) -> list[RoomSnapshot]:
        """List room containers (running or not).

        Args:
            labels: Extra label filters (all must match)

        Raises:
            RoomListingError: Runtime unreachable or listing failed
        """
        ...

    @abstractmethod
    async def get_room(self, room_id: str) -> RoomSnapshot:
        """Inspect one room container.

        Raises:
            RoomNotFoundError: No such container
            RoomListingError: Runtime error
        """
        ...

    @abstractmethod
    async def remove_room(self, room_id: str) -> None:
        """Force remove a room container.

        Removing a container that is already gone is not an error, so this
        is safe to call repeatedly.

        Raises:
            RoomRemovalError: Runtime refused or failed the removal
        """
        ...

    @abstractmethod
    async def logs(self, room_id: str, tail: int = 100) -> str:
        """Get the last ``tail`` lines of a room container's output."""
        ...

    @abstractmethod
    async def subscribe_events(self) -> RoomEventStream:
        """Subscribe to lifecycle events of room containers.

        The caller owns the returned stream and must close it.
        """
        ...

    async def close(self) -> None:
        """Release runtime client resources."""
        return None
