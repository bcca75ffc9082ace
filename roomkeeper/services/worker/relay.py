"""EventRelay - forward room lifecycle transitions to the session tracker."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from roomkeeper.models.room import RoomEventAction
from roomkeeper.services.worker.tracker import SessionStatus

if TYPE_CHECKING:
    from roomkeeper.drivers.base import RoomDriver, RoomEventStream
    from roomkeeper.models.room import RoomEvent
    from roomkeeper.services.worker.tracker import SessionTrackerClient

logger = structlog.get_logger()

# Unlisted actions are not reported.
ACTION_STATUS: dict[RoomEventAction, SessionStatus] = {
    RoomEventAction.STOPPED: SessionStatus.STOPPED,
    RoomEventAction.DESTROYED: SessionStatus.STOPPED,
    RoomEventAction.STARTED: SessionStatus.RUNNING,
}


class EventRelay:
    """Single consumer of the driver's event stream.

    Events are handled strictly one at a time in arrival order: the next
    event is not taken until the notification for the current one has
    finished (or failed).
    """

    def __init__(
        self,
        driver: "RoomDriver",
        tracker: "SessionTrackerClient",
        *,
        dump_logs_on_stop: bool = True,
        stopped_logs_tail: int = 100,
    ) -> None:
        self._driver = driver
        self._tracker = tracker
        self._dump_logs_on_stop = dump_logs_on_stop
        self._stopped_logs_tail = stopped_logs_tail
        self._log = logger.bind(component="event_relay")

    async def handle_event(self, event: "RoomEvent") -> bool:
        """Process one event. Returns True if a notification succeeded."""
        status = ACTION_STATUS.get(event.action)
        if status is None:
            self._log.debug(
                "worker.relay.event_ignored",
                room_id=event.id,
                action=event.action.value,
            )
            return False

        if status is SessionStatus.STOPPED and self._dump_logs_on_stop:
            await self._dump_logs(event.id)

        return await self._tracker.notify_from_labels(event.id, event.labels, status)

    async def _dump_logs(self, room_id: str) -> None:
        try:
            logs = await self._driver.logs(room_id, tail=self._stopped_logs_tail)
        except Exception as e:
            self._log.error("worker.relay.logs_failed", room_id=room_id, error=str(e))
            return

        self._log.info("worker.relay.room_logs", room_id=room_id, logs=logs)

    async def consume(self, stream: "RoomEventStream", stop: asyncio.Event) -> None:
        """Drain ``stream`` until ``stop`` is set.

        Each iteration takes either one event or one stream error. Stream
        errors are logged and consumption continues.
        """
        stop_wait = asyncio.ensure_future(stop.wait())
        next_event = asyncio.ensure_future(stream.events.get())
        next_error = asyncio.ensure_future(stream.errors.get())

        try:
            while True:
                done, _ = await asyncio.wait(
                    {stop_wait, next_event, next_error},
                    return_when=asyncio.FIRST_COMPLETED,
                )
                if stop_wait in done:
                    return

                if next_error in done:
                    self._log.error(
                        "worker.relay.stream_error",
                        error=str(next_error.result()),
                    )
                    next_error = asyncio.ensure_future(stream.errors.get())
                    # a ready event is picked up on the next iteration
                    continue

                event = next_event.result()
                next_event = asyncio.ensure_future(stream.events.get())
                try:
                    await self.handle_event(event)
                except Exception as e:
                    self._log.exception(
                        "worker.relay.event_error",
                        room_id=event.id,
                        action=event.action.value,
                        error=str(e),
                    )
        finally:
            for pending in (stop_wait, next_event, next_error):
                pending.cancel()

    async def run(self, stop: asyncio.Event) -> None:
        """Subscribe to room events and relay them until ``stop`` is set."""
        self._log.info("worker.relay.started")

        stream = await self._driver.subscribe_events()
        try:
            await self.consume(stream, stop)
        finally:
            await stream.close()

        self._log.info("worker.relay.stopped")
