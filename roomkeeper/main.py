"""roomkeeper worker entry point."""

from __future__ import annotations

import asyncio
import signal

import structlog

from roomkeeper import __version__
from roomkeeper.config import Settings, get_settings
from roomkeeper.drivers.base import RoomDriver
from roomkeeper.drivers.docker import DockerRoomDriver
from roomkeeper.logging import setup_logging
from roomkeeper.services.http import HTTPClientManager
from roomkeeper.services.worker import create_worker

logger = structlog.get_logger()


def _install_signal_handlers(stop_requested: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_requested.set)
        except NotImplementedError:
            # Windows event loops; KeyboardInterrupt still ends asyncio.run
            pass


async def run_worker(
    settings: Settings | None = None,
    *,
    driver: RoomDriver | None = None,
    stop_requested: asyncio.Event | None = None,
) -> None:
    """Run the worker until ``stop_requested`` is set (SIGINT/SIGTERM by default)."""
    settings = settings or get_settings()
    logger.info("roomkeeper.startup", version=__version__)

    if stop_requested is None:
        stop_requested = asyncio.Event()
        _install_signal_handlers(stop_requested)

    driver = driver or DockerRoomDriver(settings)
    http_client_manager = HTTPClientManager.from_config(settings.http)
    await http_client_manager.startup()

    supervisor = None
    try:
        supervisor = create_worker(settings, driver, http_client_manager.client)
        await supervisor.start()
        await stop_requested.wait()
    finally:
        logger.info("roomkeeper.shutdown")
        if supervisor is not None:
            await supervisor.stop()
        await driver.close()
        await http_client_manager.shutdown()


def main() -> None:
    settings = get_settings()
    setup_logging(settings.logging)
    asyncio.run(run_worker(settings))


if __name__ == "__main__":
    main()
