"""WorkerSupervisor - runs the reaper and the relay as background tasks."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from roomkeeper.services.worker.reaper import DeadlineReaper
    from roomkeeper.services.worker.relay import EventRelay

logger = structlog.get_logger()


class WorkerSupervisor:
    """Owns the shared stop signal and the two worker tasks.

    Responsibilities:
    - Start DeadlineReaper and EventRelay as independent asyncio tasks
    - Signal both to stop through one asyncio.Event
    - Optionally await their completion on stop

    The loops share no state. A slow session tracker holds up the relay but
    never the reaper.

    Usage:
        supervisor = WorkerSupervisor(reaper=reaper, relay=relay)
        await supervisor.start()
        ...
        await supervisor.stop()
    """

    def __init__(
        self,
        *,
        reaper: "DeadlineReaper | None",
        relay: "EventRelay | None",
        wait_on_shutdown: bool = True,
    ) -> None:
        self._reaper = reaper
        self._relay = relay
        self._wait_on_shutdown = wait_on_shutdown
        self._log = logger.bind(service="worker_supervisor")

        self._stop: asyncio.Event | None = None
        self._tasks: list[asyncio.Task] = []

    @property
    def is_running(self) -> bool:
        """Whether the stop signal has not been raised since start()."""
        return self._stop is not None and not self._stop.is_set()

    @property
    def tasks(self) -> list[asyncio.Task]:
        """Task handles of the loops started by the last start()."""
        return list(self._tasks)

    async def start(self) -> None:
        if self.is_running:
            self._log.warning("worker.supervisor.already_running")
            return

        self._stop = asyncio.Event()
        self._tasks = []

        if self._reaper is not None:
            self._spawn("deadline_reaper", self._reaper.run(self._stop))
        if self._relay is not None:
            self._spawn("event_relay", self._relay.run(self._stop))

        self._log.info(
            "worker.supervisor.started",
            loops=[task.get_name() for task in self._tasks],
        )

    def _spawn(self, name: str, coro) -> None:
        task = asyncio.create_task(coro, name=name)
        task.add_done_callback(self._on_task_done)
        self._tasks.append(task)

    def _on_task_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._log.error(
                "worker.supervisor.loop_crashed",
                loop=task.get_name(),
                error=str(exc),
                exc_info=exc,
            )

    async def stop(self, *, wait: bool | None = None) -> None:
        """Signal both loops to stop.

        Args:
            wait: Await the loops' completion. Defaults to the configured
                ``wait_on_shutdown``. Without waiting, a notification in
                flight is left to finish on its own.
        """
        if self._stop is None or self._stop.is_set():
            return

        if wait is None:
            wait = self._wait_on_shutdown

        self._log.info("worker.supervisor.stopping", wait=wait)
        self._stop.set()

        if wait:
            await self.join()
            self._log.info("worker.supervisor.stopped")

    async def join(self) -> None:
        """Wait until every started loop has exited."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
