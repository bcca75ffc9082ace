"""Docker driver implementation using aiodocker.

Rooms are scoped by the ``{namespace}.instance`` label: listings and events
only ever include containers of the configured instance, so several
deployments can share one Docker daemon.

The event stream uses its own aiodocker client so that a broken stream can
be torn down and re-subscribed without touching the client used for
listing/removal.
"""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING, Any

import aiodocker
import structlog
from aiodocker.exceptions import DockerError

from roomkeeper.config import get_settings
from roomkeeper.drivers.base import RoomDriver, RoomEventStream
from roomkeeper.errors import (
    EventStreamError,
    RoomListingError,
    RoomNotFoundError,
    RoomRemovalError,
)
from roomkeeper.labels.keys import LabelKeys
from roomkeeper.models.room import RoomEvent, RoomEventAction, RoomSnapshot

if TYPE_CHECKING:
    from roomkeeper.config import Settings

logger = structlog.get_logger()

# Docker container event action -> room event action
EVENT_ACTIONS: dict[str, RoomEventAction] = {
    "start": RoomEventAction.STARTED,
    "stop": RoomEventAction.STOPPED,
    "destroy": RoomEventAction.DESTROYED,
}


def _socket_url(socket: str) -> str:
    if socket.startswith(("unix://", "tcp://", "http://", "https://")):
        return socket
    return f"unix://{socket}"


class DockerRoomDriver(RoomDriver):
    """Room driver backed by the Docker Engine API."""

    def __init__(self, settings: "Settings | None" = None) -> None:
        settings = settings or get_settings()

        self._socket = _socket_url(settings.driver.docker.socket)
        self._events_reconnect_seconds = settings.driver.docker.events_reconnect_seconds

        keys = LabelKeys(
            namespace=settings.labels.namespace,
            orchestrator_namespace=settings.labels.orchestrator_namespace,
        )
        self._instance_label = keys.instance
        self._instance_name = settings.labels.instance_name

        self._log = logger.bind(driver="docker")
        self._client: aiodocker.Docker | None = None

    async def _get_client(self) -> aiodocker.Docker:
        """Get or create the aiodocker client."""
        if self._client is None:
            self._client = aiodocker.Docker(url=self._socket)
        return self._client

    async def close(self) -> None:
        """Close the docker client."""
        if self._client is not None:
            await self._client.close()
            self._client = None

    def _build_filters(self, labels: dict[str, str] | None) -> str:
        """Docker API filters, always scoped to this instance."""
        scoped = {self._instance_label: self._instance_name}
        if labels:
            scoped.update(labels)
        return json.dumps({"label": [f"{k}={v}" for k, v in scoped.items()]})

    def _snapshot_from_info(self, info: dict[str, Any]) -> RoomSnapshot:
        return RoomSnapshot(
            id=info.get("Id", ""),
            name=info.get("Name", "").lstrip("/"),
            labels=dict(info.get("Config", {}).get("Labels") or {}),
            state=info.get("State", {}).get("Status", "unknown"),
        )

    def _to_room_event(self, raw: dict[str, Any]) -> RoomEvent | None:
        """Translate a Docker event; None for events that are not about rooms."""
        if raw.get("Type") != "container":
            return None

        actor = raw.get("Actor") or {}
        attributes = dict(actor.get("Attributes") or {})
        if attributes.get(self._instance_label) != self._instance_name:
            return None

        action = EVENT_ACTIONS.get(raw.get("Action", ""), RoomEventAction.OTHER)
        return RoomEvent(
            id=actor.get("ID") or raw.get("id", ""),
            action=action,
            labels=attributes,
        )

    async def list_rooms(
        self, *, labels: dict[str, str] | None = None
    ) -> list[RoomSnapshot]:
        client = await self._get_client()
        filters = self._build_filters(labels)

        self._log.debug("docker.list_rooms", filters=filters)

        try:
            containers = await client.containers.list(all=True, filters=filters)
        except DockerError as e:
            raise RoomListingError(f"docker list failed: {e}") from e

        rooms: list[RoomSnapshot] = []
        for container in containers:
            try:
                info = await container.show()
            except DockerError as e:
                # removed between list and inspect
                if e.status == 404:
                    continue
                raise RoomListingError(f"docker inspect failed: {e}") from e
            rooms.append(self._snapshot_from_info(info))

        self._log.debug("docker.list_rooms.result", count=len(rooms))
        return rooms

    async def get_room(self, room_id: str) -> RoomSnapshot:
        client = await self._get_client()
        try:
            info = await client.containers.container(room_id).show()
        except DockerError as e:
            if e.status == 404:
                raise RoomNotFoundError(room_id) from e
            raise RoomListingError(f"docker inspect failed: {e}") from e

        room = self._snapshot_from_info(info)
        if room.labels.get(self._instance_label) != self._instance_name:
            raise RoomNotFoundError(room_id)
        return room

    async def remove_room(self, room_id: str) -> None:
        client = await self._get_client()
        self._log.info("docker.remove_room", room_id=room_id)

        try:
            await client.containers.container(room_id).delete(force=True)
        except DockerError as e:
            if e.status == 404:
                self._log.warning("docker.remove_room.not_found", room_id=room_id)
                return
            raise RoomRemovalError(f"docker remove failed: {e}") from e

    async def logs(self, room_id: str, tail: int = 100) -> str:
        client = await self._get_client()

        try:
            container = client.containers.container(room_id)
            lines = await container.log(stdout=True, stderr=True, tail=tail)
            return "".join(lines)
        except DockerError as e:
            if e.status == 404:
                return ""
            raise

    async def subscribe_events(self) -> RoomEventStream:
        stream = RoomEventStream()
        pump = asyncio.create_task(self._pump_events(stream))

        async def _stop() -> None:
            pump.cancel()
            try:
                await pump
            except asyncio.CancelledError:
                pass

        stream.on_close = _stop
        self._log.info("docker.events.subscribed")
        return stream

    async def _pump_events(self, stream: RoomEventStream) -> None:
        """Forward Docker events into ``stream`` until cancelled.

        Whenever the daemon stream ends or fails, an EventStreamError is put on
        the error queue and the stream is re-subscribed after a delay.
        """
        while True:
            client = aiodocker.Docker(url=self._socket)
            try:
                error = await self._forward_events(client, stream)
            except Exception as e:
                error = EventStreamError(f"docker event stream failed: {e}")
            finally:
                await client.close()

            self._log.warning(
                "docker.events.interrupted",
                error=str(error),
                reconnect_in=self._events_reconnect_seconds,
            )
            stream.errors.put_nowait(error)
            await asyncio.sleep(self._events_reconnect_seconds)

    async def _forward_events(
        self, client: aiodocker.Docker, stream: RoomEventStream
    ) -> EventStreamError:
        subscriber = client.events.subscribe()

        while True:
            raw = await subscriber.get()
            if raw is None:
                break
            event = self._to_room_event(raw)
            if event is not None:
                stream.events.put_nowait(event)

        # subscribers get None once the stream task finishes, with or without error
        task = client.events.task
        if task is not None and task.done() and not task.cancelled():
            exc = task.exception()
            if exc is not None:
                return EventStreamError(f"docker event stream failed: {exc}")
        return EventStreamError("docker event stream ended")
