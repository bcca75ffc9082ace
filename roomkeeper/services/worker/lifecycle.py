"""Worker wiring: build the reaper, relay and supervisor from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from roomkeeper.labels.codec import LabelCodec
from roomkeeper.services.worker.reaper import DeadlineReaper
from roomkeeper.services.worker.relay import EventRelay
from roomkeeper.services.worker.supervisor import WorkerSupervisor
from roomkeeper.services.worker.tracker import SessionTrackerClient

if TYPE_CHECKING:
    import httpx

    from roomkeeper.config import Settings
    from roomkeeper.drivers.base import RoomDriver

logger = structlog.get_logger()


def create_worker(
    settings: "Settings",
    driver: "RoomDriver",
    http_client: "httpx.AsyncClient",
) -> WorkerSupervisor:
    """Build a supervisor for the enabled loops.

    The driver and the HTTP client stay owned by the caller.
    """
    worker_config = settings.worker
    codec = LabelCodec(settings.labels)

    reaper = None
    if worker_config.reaper_enabled:
        reaper = DeadlineReaper(
            driver,
            codec,
            interval_seconds=worker_config.deadline_interval_seconds,
            run_on_startup=worker_config.run_on_startup,
        )

    relay = None
    if worker_config.relay_enabled:
        tracker = SessionTrackerClient.from_config(http_client, codec.keys, settings.tracker)
        relay = EventRelay(
            driver,
            tracker,
            dump_logs_on_stop=worker_config.dump_logs_on_stop,
            stopped_logs_tail=worker_config.stopped_logs_tail,
        )

    logger.info(
        "worker.init",
        instance=settings.labels.instance_name,
        reaper=worker_config.reaper_enabled,
        relay=worker_config.relay_enabled,
        deadline_interval_seconds=worker_config.deadline_interval_seconds,
        tracker_max_retries=settings.tracker.max_retries,
    )

    return WorkerSupervisor(
        reaper=reaper,
        relay=relay,
        wait_on_shutdown=worker_config.wait_on_shutdown,
    )
