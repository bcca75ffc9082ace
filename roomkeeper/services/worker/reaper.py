"""DeadlineReaper - remove rooms whose deadline has passed."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

import structlog

from roomkeeper.errors import InvalidValueError, MissingFieldError
from roomkeeper.utils.datetime import utcnow

if TYPE_CHECKING:
    from roomkeeper.drivers.base import RoomDriver
    from roomkeeper.labels.codec import LabelCodec
    from roomkeeper.models.room import RoomSnapshot

logger = structlog.get_logger()


@dataclass
class ReapResult:
    """Result of one reaper pass.

    Attributes:
        removed_count: Rooms past their deadline that were removed
        skipped_count: Rooms without a usable deadline label
        alive_count: Rooms whose deadline has not passed
        errors: Listing/removal failures
    """

    removed_count: int = 0
    skipped_count: int = 0
    alive_count: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, error: str) -> None:
        self.errors.append(error)


class DeadlineReaper:
    """Removes rooms once ``now > deadline``.

    Trigger condition:
        deadline label parses AND now is strictly after it

    Each pass re-lists rooms from the driver; nothing is remembered between
    passes. A failed removal leaves the room in place, so the next pass
    simply tries again.
    """

    def __init__(
        self,
        driver: "RoomDriver",
        codec: "LabelCodec",
        *,
        interval_seconds: float = 60.0,
        run_on_startup: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._driver = driver
        self._codec = codec
        self._interval_seconds = interval_seconds
        self._run_on_startup = run_on_startup
        self._clock = clock
        self._log = logger.bind(component="deadline_reaper")

    async def run_once(self) -> ReapResult:
        """Execute one reaper pass."""
        result = ReapResult()

        try:
            rooms = await self._driver.list_rooms()
        except Exception as e:
            self._log.error("worker.reaper.list_failed", error=str(e))
            result.add_error(f"list rooms: {e}")
            return result

        now = self._clock()
        for room in rooms:
            await self._process_room(room, now, result)

        self._log.debug(
            "worker.reaper.pass_complete",
            rooms=len(rooms),
            removed=result.removed_count,
            skipped=result.skipped_count,
            errors=len(result.errors),
        )
        return result

    async def _process_room(
        self, room: "RoomSnapshot", now: datetime, result: ReapResult
    ) -> None:
        try:
            deadline = self._codec.decode_deadline(room.labels)
        except MissingFieldError:
            self._log.warning("worker.reaper.deadline_missing", room_id=room.id)
            result.skipped_count += 1
            return
        except InvalidValueError as e:
            self._log.error(
                "worker.reaper.deadline_invalid",
                room_id=room.id,
                value=e.value,
                error=e.message,
            )
            result.skipped_count += 1
            return

        if not now > deadline:
            result.alive_count += 1
            return

        self._log.info(
            "worker.reaper.deadline_reached",
            room_id=room.id,
            deadline=deadline.isoformat(),
        )
        try:
            await self._driver.remove_room(room.id)
        except Exception as e:
            self._log.error("worker.reaper.remove_failed", room_id=room.id, error=str(e))
            result.add_error(f"room {room.id}: {e}")
            return

        result.removed_count += 1

    async def run(self, stop: asyncio.Event) -> None:
        """Run passes every interval until ``stop`` is set."""
        self._log.info("worker.reaper.started", interval_seconds=self._interval_seconds)

        if self._run_on_startup and not stop.is_set():
            await self._run_guarded()

        while not stop.is_set():
            try:
                await asyncio.wait_for(stop.wait(), timeout=self._interval_seconds)
            except asyncio.TimeoutError:
                await self._run_guarded()

        self._log.info("worker.reaper.stopped")

    async def _run_guarded(self) -> None:
        try:
            await self.run_once()
        except Exception as e:
            self._log.exception("worker.reaper.pass_error", error=str(e))
